# backend/quizforge/core/errors.py

from enum import Enum
from typing import Any


# ------------------------------------------------------------
# Per-attempt failures (handled inside the retry loop)
# ------------------------------------------------------------
class FailureKind(str, Enum):
    TRANSPORT = "transport"
    EXTRACTION = "extraction"
    PARSE = "parse"
    SHAPE = "shape"
    COUNT_MISMATCH = "count_mismatch"


class AttemptFailure(Exception):
    """One failed request/extract/validate cycle against the model."""

    kind: FailureKind

    def __init__(self, detail: str, attempt: int | None = None):
        super().__init__(detail)
        self.detail = detail
        self.attempt = attempt

    def __str__(self) -> str:
        prefix = f"attempt {self.attempt}: " if self.attempt is not None else ""
        return f"{prefix}{self.kind.value}: {self.detail}"


class TransportFailure(AttemptFailure):
    kind = FailureKind.TRANSPORT


class ExtractionFailure(AttemptFailure):
    kind = FailureKind.EXTRACTION


class ParseFailure(AttemptFailure):
    kind = FailureKind.PARSE


class ShapeFailure(AttemptFailure):
    kind = FailureKind.SHAPE


class CountMismatch(AttemptFailure):
    kind = FailureKind.COUNT_MISMATCH

    def __init__(self, expected: int, actual: int, attempt: int | None = None):
        super().__init__(f"Expected {expected} items, got {actual}", attempt)
        self.expected = expected
        self.actual = actual


# ------------------------------------------------------------
# Terminal failure (the only error callers see)
# ------------------------------------------------------------
class GenerationError(RuntimeError):
    """All attempts were consumed without a valid result."""

    kind = "exhausted"

    def __init__(self, attempts: int, last_failure: AttemptFailure):
        super().__init__(
            f"Model output did not validate after {attempts} attempt(s). "
            f"Last error: {last_failure}"
        )
        self.attempts = attempts
        self.last_failure = last_failure

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "attempts": self.attempts,
            "last_failure": {
                "kind": self.last_failure.kind.value,
                "attempt": self.last_failure.attempt,
                "detail": self.last_failure.detail,
            },
        }


class MissingAPIKeyError(RuntimeError):
    """No credentials were available when building the model client."""
