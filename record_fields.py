"""Record with optional fields that are left out of the wire text when empty.

A field counts as empty when it holds nothing (None) or holds the default
value of its type ("" for text, 0 for number, [] for flags).
"""

from dataclasses import dataclass
from typing import List, Optional

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

# declaration order, which is also the order keys are written in
FIELDS = ("text", "number", "flags")


class MalformedInputError(ValueError):
    """Raised when text does not decode into the shape of a Record."""


@dataclass(frozen=True)
class Record:
    text: Optional[str] = None
    number: Optional[int] = None
    flags: Optional[List[bool]] = None


def is_none_or_default(value):
    """Return True if value is None or equals the default of its own type."""
    if value is None:
        return True
    return value == type(value)()


def to_fields(record):
    """Collect the fields of a record that survive omission, in order."""
    fields = {}
    for name in FIELDS:
        value = getattr(record, name)
        if is_none_or_default(value):
            continue
        fields[name] = list(value) if name == "flags" else value
    return fields


def _check_text(value):
    if not isinstance(value, str):
        raise MalformedInputError(f"field 'text' expects a string, got {value!r}")
    return value


def _check_number(value):
    # bool is a subclass of int but is not a number on the wire
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedInputError(f"field 'number' expects an integer, got {value!r}")
    if not INT32_MIN <= value <= INT32_MAX:
        raise MalformedInputError(f"field 'number' out of 32-bit range: {value}")
    return value


def _check_flags(value):
    if not isinstance(value, list):
        raise MalformedInputError(f"field 'flags' expects a list of booleans, got {value!r}")
    for i, item in enumerate(value):
        if not isinstance(item, bool):
            raise MalformedInputError(f"field 'flags' item {i} is not a boolean: {item!r}")
    return list(value)


_CHECKS = {
    "text": _check_text,
    "number": _check_number,
    "flags": _check_flags,
}


def from_fields(mapping):
    """Build a Record from a decoded mapping.

    Missing keys and explicit nulls become None. Keys that are not Record
    fields are ignored.

    Raises:
        MalformedInputError: if mapping is not a dict or a field has the
            wrong type.
    """
    if not isinstance(mapping, dict):
        raise MalformedInputError(f"expected an object at top level, got {type(mapping).__name__}")

    values = {}
    for name in FIELDS:
        value = mapping.get(name)
        values[name] = None if value is None else _CHECKS[name](value)
    return Record(**values)
