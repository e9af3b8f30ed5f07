# backend/quizforge/core/record_shape.py

import json
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Any, Dict, List, Mapping, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, create_model

# Extra keys from the model are kept. Numbers are accepted where a string is
# declared and come back as strings; anything else is a shape error.
RECORD_CONFIG = ConfigDict(extra="allow", coerce_numbers_to_str=True)


class FieldKind(str, Enum):
    STRING = "string"
    STRING_ARRAY = "string_array"
    OBJECT = "object"


@dataclass(frozen=True)
class RecordField:
    name: str
    kind: FieldKind
    shape: "RecordShape | None" = None

    def __post_init__(self):
        if (self.kind is FieldKind.OBJECT) != (self.shape is not None):
            raise ValueError(f"Field '{self.name}': nested shape is required for object fields only")

    def example(self) -> Any:
        if self.kind is FieldKind.STRING:
            return ""
        if self.kind is FieldKind.STRING_ARRAY:
            return [""]
        return self.shape.example()

    def annotation(self) -> Any:
        if self.kind is FieldKind.STRING:
            return str
        if self.kind is FieldKind.STRING_ARRAY:
            return List[str]
        return self.shape.model


def describe_error(exc: ValidationError) -> str:
    """One-line reason from the first pydantic error, e.g. "item 0: missing field 'answer'"."""
    err = exc.errors()[0]
    loc = list(err["loc"])
    prefix = ""
    if loc and isinstance(loc[0], int):
        prefix = f"item {loc.pop(0)}: "
    path = ".".join(str(p) for p in loc)
    if not path:
        return f"{prefix}{err['msg']}"
    if err["type"] == "missing":
        return f"{prefix}missing field '{path}'"
    return f"{prefix}field '{path}': {err['msg']}"


@dataclass(frozen=True)
class RecordShape:
    """Typed descriptor of one output record.

    The model only ever sees ``schema_json()``, the example object wrapped
    in a one-element array. Replies are validated against ``model``, a
    pydantic model generated from the fields.
    """

    fields: Tuple[RecordField, ...]
    name: str = "Record"

    def __post_init__(self):
        names = [f.name for f in self.fields]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate field names in record shape: {names}")

    # ------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------
    @classmethod
    def of(cls, *names: str) -> "RecordShape":
        """All-string shape, the common case for quiz records."""
        return cls(tuple(RecordField(n, FieldKind.STRING) for n in names))

    @classmethod
    def from_example(cls, example: Mapping[str, Any], name: str = "Record") -> "RecordShape":
        fields: List[RecordField] = []
        for key, value in example.items():
            if isinstance(value, str):
                fields.append(RecordField(key, FieldKind.STRING))
            elif isinstance(value, list) and all(isinstance(v, str) for v in value):
                fields.append(RecordField(key, FieldKind.STRING_ARRAY))
            elif isinstance(value, Mapping):
                nested = cls.from_example(value, name=f"{name}_{key}")
                fields.append(RecordField(key, FieldKind.OBJECT, nested))
            else:
                raise ValueError(
                    f"Unsupported example value for field '{key}': {value!r} "
                    "(use a string, a list of strings or a nested mapping)"
                )
        return cls(tuple(fields), name=name)

    # ------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------
    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def __len__(self) -> int:
        return len(self.fields)

    def __bool__(self) -> bool:
        return bool(self.fields)

    def example(self) -> Dict[str, Any]:
        return {f.name: f.example() for f in self.fields}

    def schema_json(self) -> str:
        return json.dumps([self.example()], indent=2, ensure_ascii=False)

    # ------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------
    @cached_property
    def model(self) -> Type[BaseModel]:
        # Positional attribute names with aliases, so keys like "type" or
        # "model_config" cannot clash with BaseModel attributes.
        definitions = {
            f"f{i}": (field.annotation(), Field(..., alias=field.name))
            for i, field in enumerate(self.fields)
        }
        return create_model(self.name, __config__=RECORD_CONFIG, **definitions)

    @cached_property
    def _list_adapter(self) -> TypeAdapter:
        return TypeAdapter(List[self.model])

    def validate_records(self, items: Any) -> List[Dict[str, Any]]:
        """Validate a parsed array. Raises pydantic.ValidationError."""
        return [r.model_dump(by_alias=True) for r in self._list_adapter.validate_python(items)]

    def conforms(self, value: Any) -> str | None:
        """Return None if ``value`` matches the shape, else the first reason it doesn't."""
        try:
            self.model.model_validate(value)
        except ValidationError as e:
            return describe_error(e)
        return None
