"""
Typed metadata values.

A metadata map holds heterogeneous values (text, numbers, booleans, string
lists, JSON structures, binary blobs). Submit-time validation turns the loose
editing values into one of the tagged variants below, selected by the
owning field definition's declared type.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union


@dataclass(frozen=True)
class Blob:
    """Opaque binary payload produced by a file picker."""

    content: bytes
    content_type: str = "application/octet-stream"
    filename: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"Blob(filename={self.filename!r}, content_type={self.content_type!r}, "
            f"size={len(self.content)})"
        )


@dataclass(frozen=True)
class Text:
    value: str

    @property
    def wire(self) -> str:
        return self.value


@dataclass(frozen=True)
class Number:
    value: Union[int, float]

    @property
    def wire(self) -> Union[int, float]:
        return self.value


@dataclass(frozen=True)
class Bool:
    value: bool

    @property
    def wire(self) -> bool:
        return self.value


@dataclass(frozen=True)
class StringList:
    value: List[str] = field(default_factory=list)

    @property
    def wire(self) -> List[str]:
        return list(self.value)


@dataclass(frozen=True)
class BlobValue:
    value: Blob

    @property
    def wire(self) -> Blob:
        return self.value


@dataclass(frozen=True)
class Json:
    value: Any

    @property
    def wire(self) -> Any:
        return self.value


TypedValue = Union[Text, Number, Bool, StringList, BlobValue, Json]

TYPED_VALUE_CLASSES = (Text, Number, Bool, StringList, BlobValue, Json)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def loads_json(text: str) -> Any:
    """Parse strict JSON text.

    ``NaN``, ``Infinity`` and ``-Infinity`` are rejected like any other
    invalid input.

    Raises:
        ValueError: If ``text`` is not valid JSON
    """
    return json.loads(text, parse_constant=_reject_constant)


def json_default(value: Any) -> Any:
    """``json.dumps`` fallback: a Blob nested in a structure has no JSON form
    and serializes as an empty object."""
    if isinstance(value, Blob):
        return {}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dumps_compact(value: Any) -> str:
    """Compact JSON as it goes on the wire."""
    return json.dumps(
        value,
        separators=(",", ":"),
        ensure_ascii=False,
        default=json_default,
    )


def unwrap(value: Any) -> Any:
    """Return the wire value of a TypedValue, or ``value`` unchanged."""
    if isinstance(value, TYPED_VALUE_CLASSES):
        return value.wire
    return value


def parse_number(raw: Any) -> Optional[Union[int, float]]:
    """Parse ``raw`` into a finite int or float, or return None.

    Booleans are not numbers here. Integral text stays an int so that it
    renders back without a trailing ``.0``.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return raw if math.isfinite(raw) else None
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text or "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def stringify(value: Any) -> str:
    """String form of a primitive as it appears in forms and on the wire.

    ``True``/``False`` become ``true``/``false``, integral floats drop the
    ``.0`` and ``None`` becomes the empty string.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return dumps_compact(value)
    return str(value)
