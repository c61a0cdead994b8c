"""
Wire representation of 64-bit integer identifiers.

JavaScript clients read JSON numbers as doubles and silently lose precision above 2**53, so ids
cross the JSON boundary as decimal strings:

    class UserOut(BaseModel):
        id: Int64Str                        # 9007199254740993 -> "9007199254740993"
        parent_id: OptionalInt64Str = None  # "" -> None

Python-mode dumps (`model_dump()`) keep real ints; only JSON-mode output is stringified.
"""

from typing import Annotated, Any

from pydantic import BeforeValidator, Field, PlainSerializer

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def parse_int64(value: Any) -> Any:
    """Accept ints or decimal strings; anything else is left for pydantic's int validation."""
    if isinstance(value, str):
        text = value.strip()
        if not text.lstrip("-").isdigit():
            raise ValueError(f"invalid integer string: {value!r}")
        return int(text)
    return value


def parse_optional_int64(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return parse_int64(value)


def _int_to_str(value: int) -> str:
    return str(value)


def _optional_int_to_str(value: int | None) -> str | None:
    return None if value is None else str(value)


_BoundedInt64 = Annotated[int, Field(ge=INT64_MIN, le=INT64_MAX)]

Int64Str = Annotated[
    _BoundedInt64,
    BeforeValidator(parse_int64),
    PlainSerializer(_int_to_str, return_type=str, when_used="json"),
]

OptionalInt64Str = Annotated[
    _BoundedInt64 | None,
    BeforeValidator(parse_optional_int64),
    PlainSerializer(_optional_int_to_str, return_type=str | None, when_used="json"),
]

__all__ = ["Int64Str", "OptionalInt64Str", "parse_int64", "parse_optional_int64"]
