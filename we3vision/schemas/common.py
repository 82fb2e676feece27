"""
Shared schema building blocks.

- APIModel: camelCase wire names, snake_case attributes.
- StringList: the lenient list field used by tags, requirements, etc.
- validate_fields: run a raw field set through a schema and report
  violations as ordered {field, message} pairs.
"""

import json
import re
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, ClassVar, Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, BeforeValidator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from we3vision.core.derived import as_utc
from we3vision.core.exceptions import ValidationError


class APIModel(BaseModel):
    """Base schema: accepts camelCase or snake_case input, emits camelCase."""

    # Per-field messages used instead of pydantic's generic ones
    field_messages: ClassVar[Dict[str, str]] = {}

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class ListInputKind(str, Enum):
    """How a list-typed field arrived on the wire, in order of precedence."""
    NATIVE = "native"
    JSON = "json"
    DELIMITED = "delimited"
    EMPTY = "empty"


def classify_list_input(value: Any) -> Tuple[ListInputKind, List[Any]]:
    """
    Decide how to read a list-typed field.

    Precedence: a native list wins; otherwise a string that parses as a
    JSON array; otherwise the string is split on commas. None is empty.
    """
    if value is None:
        return ListInputKind.EMPTY, []
    if isinstance(value, (list, tuple)):
        return ListInputKind.NATIVE, list(value)
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return ListInputKind.JSON, parsed
        return ListInputKind.DELIMITED, value.split(",")
    raise ValueError("Must be an array of strings")


def normalize_string_list(value: Any) -> List[str]:
    """Normalize list, JSON-array string, or comma string to trimmed non-empty strings."""
    _, items = classify_list_input(value)
    normalized = []
    for item in items:
        if item is None:
            continue
        if isinstance(item, (list, tuple, dict)):
            raise ValueError("Must be an array of strings")
        text = str(item).strip()
        if text:
            normalized.append(text)
    return normalized


StringList = Annotated[List[str], BeforeValidator(normalize_string_list)]


def blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def trimmed_length(value: Any, min_length: int, max_length: Optional[int], message: str) -> str:
    """Trim a string and enforce length bounds, raising `message` on failure."""
    if not isinstance(value, str):
        raise ValueError(message)
    value = value.strip()
    if len(value) < min_length or (max_length is not None and len(value) > max_length):
        raise ValueError(message)
    return value


_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}([T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?)?$")


def parse_iso8601(value: Any, message: str = "Invalid date format") -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime string; naive values are UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str) or not _ISO_DATE.match(value.strip()):
        raise ValueError(message)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(text))
    except ValueError:
        raise ValueError(message)


def _field_name(loc) -> str:
    return ".".join(str(part) for part in loc) or "body"


def _humanize(field: str) -> str:
    last = field.split(".")[-1]
    spaced = re.sub(r"(?<!^)(?=[A-Z])", " ", last)
    return spaced[:1].upper() + spaced[1:].lower()


def _violation_message(schema: Type[APIModel], field: str, error: Dict[str, Any]) -> str:
    ctx = error.get("ctx") or {}
    if error["type"] == "value_error" and "error" in ctx:
        return str(ctx["error"])
    if error["type"] == "missing":
        return f"{_humanize(field)} is required"
    return schema.field_messages.get(field, error["msg"])


SchemaT = TypeVar("SchemaT", bound=APIModel)


def validate_fields(schema: Type[SchemaT], raw: Dict[str, Any]) -> SchemaT:
    """
    Validate a raw field set against `schema`.

    Returns the validated model, or raises ValidationError whose `errors`
    lists one {field, message} per violation in field declaration order.
    """
    try:
        return schema.model_validate(raw)
    except PydanticValidationError as exc:
        violations = []
        for error in exc.errors():
            field = _field_name(error["loc"])
            violations.append({"field": field, "message": _violation_message(schema, field, error)})
        raise ValidationError("Validation failed", errors=violations)


def to_payload(schema: Type[APIModel], obj: Any) -> Dict[str, Any]:
    """Serialize an ORM object (or dict) through `schema` to camelCase JSON data."""
    return schema.model_validate(obj).model_dump(mode="json", by_alias=True)
