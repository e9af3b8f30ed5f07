# backend/quizforge/core/__init__.py
"""
Core package for the quiz question service.
Exposes the strict-output client, record shapes and the error taxonomy.
"""

from .errors import (
    AttemptFailure,
    CountMismatch,
    ExtractionFailure,
    FailureKind,
    GenerationError,
    MissingAPIKeyError,
    ParseFailure,
    ShapeFailure,
    TransportFailure,
)
from .extraction import extract_first_array
from .llm import OpenAITextModel, ScriptedTextModel, TextModel, configure_openai
from .record_shape import FieldKind, RecordField, RecordShape
from .strict_output import StrictOutputClient, build_prompt, strict_output

__all__ = [
    "AttemptFailure",
    "CountMismatch",
    "ExtractionFailure",
    "FailureKind",
    "GenerationError",
    "MissingAPIKeyError",
    "ParseFailure",
    "ShapeFailure",
    "TransportFailure",
    "extract_first_array",
    "OpenAITextModel",
    "ScriptedTextModel",
    "TextModel",
    "configure_openai",
    "FieldKind",
    "RecordField",
    "RecordShape",
    "StrictOutputClient",
    "build_prompt",
    "strict_output",
]
