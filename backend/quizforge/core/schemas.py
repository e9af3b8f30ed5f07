from enum import Enum
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union


class QuestionType(str, Enum):
    MCQ = "mcq"
    OPEN_ENDED = "open_ended"


# ------------------------------------------------------------
# Request models
# ------------------------------------------------------------
class GetQuestionsRequest(BaseModel):
    amount: int = Field(ge=1, le=10)                     # number of questions
    topic: str = Field(min_length=4, max_length=50)      # e.g. "volcanoes"
    type: QuestionType


# ------------------------------------------------------------
# Question & Response models
# ------------------------------------------------------------
class Question(BaseModel):
    question_id: str
    type: QuestionType
    question: str
    answer: str
    options: Optional[List[str]] = None                  # mcq only, shuffled


class QuestionsResponse(BaseModel):
    questions: List[Question]


class ErrorResponse(BaseModel):
    error: Union[str, List[Dict[str, Any]]]          # message, or request validation issues
    attempts: Optional[int] = None
