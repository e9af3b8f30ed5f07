# backend/quizforge/app.py

import logging
import sys
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from quizforge.core.config import get_settings
from quizforge.core.errors import GenerationError, MissingAPIKeyError
from quizforge.core.llm import OpenAITextModel, configure_openai
from quizforge.core.questions import generate_questions
from quizforge.core.schemas import ErrorResponse, GetQuestionsRequest, QuestionsResponse
from quizforge.core.strict_output import StrictOutputClient

# ------------------------------------------------------------
# Setup
# ------------------------------------------------------------
load_dotenv()
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s [%(levelname)s] [%(name)s] %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger("quiz")


def build_strict_client() -> StrictOutputClient:
    """Bind credentials and build the model client. Raises MissingAPIKeyError without a key."""
    settings = get_settings()
    openai_client = configure_openai(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
    )
    return StrictOutputClient(
        OpenAITextModel(openai_client, model=settings.openai_model),
        temperature=settings.temperature,
        top_p=settings.top_p,
        attempt_timeout=settings.attempt_timeout,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.strict_client = None
    yield
    client = app.state.strict_client
    if client is not None and isinstance(client.model, OpenAITextModel):
        await client.model.aclose()
        logger.info("OpenAI client closed.")


app = FastAPI(title="Quiz Question API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware to log requests
class LogRequestMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        logger.info(f"Incoming {request.method} {request.url.path}")
        return await call_next(request)

app.add_middleware(LogRequestMiddleware)


# Async so it runs on the event loop: check-and-set cannot interleave,
# and only one client is ever built per app.
async def get_strict_client(request: Request) -> StrictOutputClient:
    client = getattr(request.app.state, "strict_client", None)
    if client is None:
        client = build_strict_client()
        request.app.state.strict_client = client
    return client


def error_response(status_code: int, **fields) -> JSONResponse:
    body = ErrorResponse(**fields).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


# ------------------------------------------------------------
# Exception handlers
# ------------------------------------------------------------
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error: {exc.errors()}")
    return error_response(400, error=jsonable_encoder(exc.errors()))

@app.exception_handler(GenerationError)
async def generation_exception_handler(request: Request, exc: GenerationError):
    logger.error(f"Question generation exhausted: {exc}")
    return error_response(502, error="Question generation failed.", attempts=exc.attempts)

@app.exception_handler(MissingAPIKeyError)
async def missing_key_exception_handler(request: Request, exc: MissingAPIKeyError):
    logger.error(f"Missing API key: {exc}")
    return error_response(500, error="OpenAI API key is missing.")

# ------------------------------------------------------------
# Routes
# ------------------------------------------------------------
@app.post(
    "/api/questions",
    response_model=QuestionsResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def questions_route(
    req: GetQuestionsRequest,
    client: StrictOutputClient = Depends(get_strict_client),
):
    try:
        questions = await generate_questions(
            client,
            topic=req.topic,
            qtype=req.type,
            amount=req.amount,
            max_attempts=get_settings().max_attempts,
        )
    except GenerationError:
        raise
    except Exception:
        logger.error("GPT QUESTION ERROR", exc_info=True)
        return error_response(500, error="An unexpected error occurred.")

    return {"questions": questions}

@app.get("/healthz")
def healthz():
    return {"ok": True}
