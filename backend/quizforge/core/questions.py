# backend/quizforge/core/questions.py

import logging
import random
import uuid
from typing import Any, Dict, List

from .record_shape import RecordShape
from .schemas import Question, QuestionType
from .strict_output import StrictOutputClient

logger = logging.getLogger("quiz.qg")

# ------------------------------------------------------------
# Prompt templates and record shapes
# ------------------------------------------------------------
QG_ROLE = "You are an expert quiz generator."

OPEN_ENDED_TASK_TEMPLATE = (
    'Generate EXACTLY {amount} hard open-ended questions about "{topic}".\n'
    "Each answer must be at most 15 words."
)

MCQ_TASK_TEMPLATE = (
    'Generate EXACTLY {amount} hard multiple choice questions about "{topic}".\n'
    "Each question must have 4 options and answers must be at most 15 words."
)

OPEN_ENDED_SHAPE = RecordShape.of("question", "answer")
MCQ_SHAPE = RecordShape.of("question", "answer", "option1", "option2", "option3")

_TASKS = {
    QuestionType.OPEN_ENDED: (OPEN_ENDED_TASK_TEMPLATE, OPEN_ENDED_SHAPE),
    QuestionType.MCQ: (MCQ_TASK_TEMPLATE, MCQ_SHAPE),
}


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------
def _shuffled_options(record: Dict[str, Any], rng: random.Random) -> List[str]:
    """Three distractors plus the answer, in random order."""
    options = [
        record["option1"].strip(),
        record["option2"].strip(),
        record["option3"].strip(),
        record["answer"].strip(),
    ]
    rng.shuffle(options)
    return options


def to_question(qtype: QuestionType, record: Dict[str, Any], rng: random.Random) -> Question:
    return Question(
        question_id=str(uuid.uuid4()),
        type=qtype,
        question=record["question"].strip(),
        answer=record["answer"].strip(),
        options=_shuffled_options(record, rng) if qtype is QuestionType.MCQ else None,
    )


# ------------------------------------------------------------
# Main generator
# ------------------------------------------------------------
async def generate_questions(
    client: StrictOutputClient,
    topic: str,
    qtype: QuestionType | str,
    amount: int,
    max_attempts: int = 3,
    rng: random.Random | None = None,
) -> List[Question]:
    qtype = QuestionType(qtype)
    template, shape = _TASKS[qtype]
    rng = rng or random.Random()

    records = await client.generate(
        QG_ROLE,
        template.format(amount=amount, topic=topic),
        shape,
        expected_count=amount,
        max_attempts=max_attempts,
    )

    questions = [to_question(qtype, r, rng) for r in records]
    logger.info(f"Generated {len(questions)} {qtype.value} questions about '{topic}'.")
    return questions
