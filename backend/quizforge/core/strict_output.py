# backend/quizforge/core/strict_output.py
"""
Strict structured output on top of a free-text model.

The model is asked for a JSON array of records shaped like a RecordShape.
Its reply is never trusted: the array is extracted, parsed, shape-checked and
(optionally) count-checked, and any failure triggers another attempt with the
exact same prompt. Only a fully valid array is ever returned.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping

from pydantic import ValidationError

from .errors import (
    AttemptFailure,
    CountMismatch,
    ExtractionFailure,
    GenerationError,
    ParseFailure,
    ShapeFailure,
    TransportFailure,
)
from .extraction import find_array_span, has_trailing_array
from .llm import TextModel
from .record_shape import RecordShape, describe_error

logger = logging.getLogger("quiz.strict")

RetryDelay = Callable[[int], float]
Sleep = Callable[[float], Awaitable[Any]]


def no_delay(attempt: int) -> float:
    return 0.0


# ------------------------------------------------------------
# Prompt template
# ------------------------------------------------------------
def build_prompt(
    role_instruction: str,
    task_instruction: str,
    record_shape: RecordShape,
    expected_count: int | None = None,
) -> str:
    count_rule = (
        f"- Array MUST contain EXACTLY {expected_count} objects\n" if expected_count else ""
    )
    return (
        f"{role_instruction}\n\n"
        "CRITICAL INSTRUCTIONS (DO NOT IGNORE):\n"
        "- Return ONLY valid JSON\n"
        "- No markdown\n"
        "- No explanations\n"
        "- No comments\n"
        "- No text outside JSON\n"
        "- Output MUST be a JSON ARRAY\n"
        f"{count_rule}"
        "\n"
        "JSON SCHEMA:\n"
        f"{record_shape.schema_json()}\n\n"
        "User request:\n"
        f"{task_instruction}\n"
    )


# ------------------------------------------------------------
# Validation of one reply
# ------------------------------------------------------------
def parse_reply(
    raw: str,
    record_shape: RecordShape,
    expected_count: int | None = None,
    attempt: int | None = None,
) -> List[Dict[str, Any]]:
    """Turn raw model text into validated records or raise an AttemptFailure."""
    span = find_array_span(raw)
    if span is None:
        raise ExtractionFailure("No JSON array found in model response", attempt)
    start, end = span

    if has_trailing_array(raw, end):
        logger.warning(
            f"Attempt {attempt}: response holds more than one JSON array; only the first is used"
        )

    try:
        parsed = json.loads(raw[start:end])
    except json.JSONDecodeError as e:
        raise ParseFailure(f"Invalid JSON: {e}", attempt) from e

    if not isinstance(parsed, list):
        raise ShapeFailure(f"Output is not an array ({type(parsed).__name__})", attempt)

    try:
        records = record_shape.validate_records(parsed)
    except ValidationError as e:
        raise ShapeFailure(describe_error(e), attempt) from e

    if expected_count is not None and len(records) != expected_count:
        raise CountMismatch(expected_count, len(records), attempt)

    return records


# ------------------------------------------------------------
# Client
# ------------------------------------------------------------
class StrictOutputClient:
    """
    Generates validated arrays of records from a TextModel.

    Holds no per-call state, so one instance can serve concurrent callers.
    Attempts within a call are strictly sequential.
    """

    def __init__(
        self,
        model: TextModel,
        *,
        temperature: float = 0.2,
        top_p: float = 0.9,
        attempt_timeout: float | None = None,
        retry_delay: RetryDelay = no_delay,
        sleep: Sleep = asyncio.sleep,
    ):
        self.model = model
        self.temperature = temperature
        self.top_p = top_p
        self.attempt_timeout = attempt_timeout
        self.retry_delay = retry_delay
        self.sleep = sleep

    async def _call_model(self, prompt: str, attempt: int) -> str:
        call = self.model.generate_text(prompt, temperature=self.temperature, top_p=self.top_p)
        try:
            if self.attempt_timeout is None:
                return await call
            return await asyncio.wait_for(call, timeout=self.attempt_timeout)
        except TransportFailure as e:
            e.attempt = attempt
            raise
        except asyncio.TimeoutError as e:
            raise TransportFailure(
                f"Model call timed out after {self.attempt_timeout}s", attempt
            ) from e
        except Exception as e:
            raise TransportFailure(f"{type(e).__name__}: {e}", attempt) from e

    async def generate(
        self,
        role_instruction: str,
        task_instruction: str,
        record_shape: RecordShape | Mapping[str, Any],
        expected_count: int | None = None,
        max_attempts: int = 3,
    ) -> List[Dict[str, Any]]:
        if not isinstance(record_shape, RecordShape):
            record_shape = RecordShape.from_example(record_shape)
        if not record_shape:
            raise ValueError("record_shape must have at least one field")
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        if expected_count is not None and expected_count < 1:
            raise ValueError(f"expected_count must be >= 1, got {expected_count}")

        prompt = build_prompt(role_instruction, task_instruction, record_shape, expected_count)
        last_failure: AttemptFailure | None = None

        for attempt in range(1, max_attempts + 1):
            try:
                raw = await self._call_model(prompt, attempt)
                records = parse_reply(raw, record_shape, expected_count, attempt)
            except AttemptFailure as e:
                last_failure = e
                logger.warning(f"Model attempt {attempt}/{max_attempts} failed: {e}")
                if attempt < max_attempts:
                    delay = self.retry_delay(attempt)
                    if delay > 0:
                        await self.sleep(delay)
                continue

            logger.info(f"Generated {len(records)} record(s) on attempt {attempt}/{max_attempts}.")
            return records

        logger.error(f"FINAL model failure after {max_attempts} attempt(s): {last_failure}")
        raise GenerationError(max_attempts, last_failure) from last_failure


async def strict_output(
    model: TextModel,
    role_instruction: str,
    task_instruction: str,
    record_shape: RecordShape | Mapping[str, Any],
    expected_count: int | None = None,
    max_attempts: int = 3,
    **client_options: Any,
) -> List[Dict[str, Any]]:
    """One-shot helper: build a StrictOutputClient around ``model`` and generate."""
    client = StrictOutputClient(model, **client_options)
    return await client.generate(
        role_instruction, task_instruction, record_shape, expected_count, max_attempts
    )
