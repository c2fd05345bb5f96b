"""
Metadata builder: free-form key/value rows synced with a canonical JSON string.

Used for ad-hoc metadata where no field definition list applies. The JSON
string is canonical; rows are a reconstructible projection of it.

Loading is lenient: empty, unparseable or non-object text starts a fresh
single empty row instead of reporting an error. Strict checking happens in
the field codec at submit time.
"""

from __future__ import annotations

import base64
import json
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

import structlog

from .codec.fields import display_value, is_absent, split_list
from .schemas.entities import FieldDefinition, FieldType
from .schemas.values import Blob, loads_json, parse_number, stringify

logger = structlog.get_logger()

_WHITESPACE = re.compile(r"\s+")


class MetadataValueType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class MetadataRow:
    key: str = ""
    value: str = ""
    type: MetadataValueType = MetadataValueType.TEXT


def infer_type(value: Any) -> MetadataValueType:
    if isinstance(value, bool):
        return MetadataValueType.BOOLEAN
    if isinstance(value, (int, float)):
        return MetadataValueType.NUMBER
    return MetadataValueType.TEXT


def _row_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    return stringify(value)


def _parse_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    if not text or not text.strip():
        return None
    try:
        parsed = loads_json(text)
    except ValueError:
        logger.debug("metadata_builder_reset", reason="invalid_json")
        return None
    if not isinstance(parsed, dict):
        logger.debug("metadata_builder_reset", reason="not_an_object")
        return None
    return parsed


def decode_rows(text: Optional[str]) -> List[MetadataRow]:
    """Project canonical JSON text into rows (one empty row when there is nothing)."""
    parsed = _parse_object(text)
    if not parsed:
        return [MetadataRow()]
    return [
        MetadataRow(key=key, value=_row_text(raw), type=infer_type(raw))
        for key, raw in parsed.items()
    ]


def rows_to_object(rows: List[MetadataRow]) -> Dict[str, Any]:
    """Collect rows into a JSON object.

    Rows with an empty key are skipped; number rows that do not parse are
    dropped silently.
    """
    payload: Dict[str, Any] = {}
    for row in rows:
        key = row.key.strip()
        if not key:
            continue
        if row.type == MetadataValueType.NUMBER:
            number = parse_number(row.value)
            if number is not None:
                payload[key] = number
            continue
        if row.type == MetadataValueType.BOOLEAN:
            payload[key] = row.value == "true"
            continue
        payload[key] = row.value
    return payload


def _canonical(payload: Dict[str, Any]) -> str:
    # No keys means "no extra metadata": emit "" rather than "{}".
    if not payload:
        return ""
    return json.dumps(payload, indent=2, ensure_ascii=False)


def encode_rows(rows: List[MetadataRow]) -> str:
    """Canonical JSON text of ``rows``; the empty string when no key survives."""
    return _canonical(rows_to_object(rows))


class MetadataBuilder:
    """Ordered editable rows kept in sync with a canonical JSON string."""

    def __init__(
        self, value: str = "", on_change: Optional[Callable[[str], None]] = None
    ):
        self.on_change = on_change
        self.value = value
        self.rows: List[MetadataRow] = decode_rows(value)

    def load(self, text: Optional[str]) -> None:
        """Replace the rows from externally supplied JSON text."""
        self.value = text or ""
        self.rows = decode_rows(text)

    def sync(self, text: Optional[str]) -> bool:
        """Reload only if ``text`` differs from the current canonical value."""
        if (text or "") == self.value:
            return False
        self.load(text)
        return True

    def _emit(self, rows: List[MetadataRow]) -> str:
        self.rows = rows
        self.value = encode_rows(rows)
        if self.on_change is not None:
            self.on_change(self.value)
        return self.value

    def _replace(self, index: int, **changes: Any) -> str:
        rows = list(self.rows)
        rows[index] = replace(rows[index], **changes)
        return self._emit(rows)

    def set_key(self, index: int, key: str) -> str:
        """Keys cannot contain whitespace; it is removed as typed."""
        return self._replace(index, key=_WHITESPACE.sub("", key))

    def set_type(self, index: int, value_type: Union[MetadataValueType, str]) -> str:
        value_type = MetadataValueType(value_type)
        changes: Dict[str, Any] = {"type": value_type}
        if value_type == MetadataValueType.BOOLEAN:
            changes["value"] = "false"
        return self._replace(index, **changes)

    def set_value(self, index: int, value: str) -> str:
        return self._replace(index, value=value)

    def add_row(self) -> str:
        return self._emit(self.rows + [MetadataRow()])

    def remove_row(self, index: int) -> str:
        rows = [row for i, row in enumerate(self.rows) if i != index]
        return self._emit(rows or [MetadataRow()])

    def to_dict(self) -> Dict[str, Any]:
        return rows_to_object(self.rows)


def blob_to_data_url(blob: Blob) -> str:
    encoded = base64.b64encode(blob.content).decode("ascii")
    return f"data:{blob.content_type};base64,{encoded}"


class SchemaMetadataEditor:
    """Schema-bound mode of the builder.

    Holds a value map for a fixed field list and emits canonical JSON.
    Absent values remove their key; images are embedded as data URLs
    because JSON cannot carry a blob.
    """

    def __init__(
        self,
        fields: List[FieldDefinition],
        value: str = "",
        on_change: Optional[Callable[[str], None]] = None,
    ):
        self.fields = list(fields)
        self.on_change = on_change
        self.value = value
        self.values: Dict[str, Any] = _parse_object(value) or {}

    def _field(self, key: str) -> FieldDefinition:
        for definition in self.fields:
            if definition.key == key:
                return definition
        raise KeyError(key)

    def load(self, text: Optional[str]) -> None:
        self.value = text or ""
        self.values = _parse_object(text) or {}

    def set_value(self, key: str, raw: Any) -> str:
        definition = self._field(key)
        values = dict(self.values)

        if isinstance(raw, Blob):
            raw = blob_to_data_url(raw)

        blank = isinstance(raw, str) and not raw.strip()
        if is_absent(raw) or (definition.type == FieldType.JSON and blank):
            values.pop(key, None)
        elif definition.type == FieldType.NUMBER:
            number = parse_number(raw)
            values[key] = raw if number is None else number
        elif definition.type == FieldType.BOOLEAN:
            values[key] = bool(raw)
        elif definition.type == FieldType.MULTISELECT:
            values[key] = raw if isinstance(raw, list) else split_list(raw)
        elif definition.type == FieldType.JSON and isinstance(raw, str):
            try:
                values[key] = loads_json(raw)
            except ValueError:
                values[key] = raw
        else:
            values[key] = raw

        self.values = values
        self.value = _canonical(values)
        if self.on_change is not None:
            self.on_change(self.value)
        return self.value

    def display(self, key: str) -> Any:
        """Editor value: checkbox state for booleans, text otherwise."""
        definition = self._field(key)
        current = self.values.get(key)
        if definition.type == FieldType.BOOLEAN:
            return bool(current)
        return display_value(current, definition.type)
