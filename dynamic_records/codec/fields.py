"""
Field codec: per-field-type parsing, display and submit-time validation.

Values go through two phases:
- Edit time (``parse_input``) is lenient. A half-typed number stays a string
  so the operator can keep typing.
- Submit time (``validate_field`` / ``build_metadata``) is strict and is the
  single gate before a payload is encoded and sent.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional, Union

from ..exceptions import FieldValidationError
from ..schemas.entities import FieldDefinition, FieldType
from ..schemas.values import (
    Blob,
    BlobValue,
    Bool,
    Json,
    Number,
    StringList,
    Text,
    TypedValue,
    json_default,
    loads_json,
    parse_number,
    stringify,
)


def split_list(raw: str) -> List[str]:
    """Split comma-separated text, trimming segments and dropping empty ones.

    Examples:
        "a, b, ,b" -> ["a", "b", "b"]
        "" -> []
    """
    segments = [segment.strip() for segment in str(raw).split(",")]
    return [s for s in segments if s]


def _field_type(field_type: Union[FieldType, str]) -> FieldType:
    return field_type if isinstance(field_type, FieldType) else FieldType(field_type)


def parse_input(field_type: Union[FieldType, str], raw: Any) -> Any:
    """Turn raw editor input into the value kept in the editing state."""
    field_type = _field_type(field_type)

    if field_type == FieldType.BOOLEAN:
        return bool(raw)

    if field_type == FieldType.MULTISELECT:
        if isinstance(raw, list):
            return raw
        if raw is None:
            return []
        return split_list(raw)

    if field_type == FieldType.NUMBER:
        if raw is None or raw == "":
            return ""
        number = parse_number(raw)
        return raw if number is None else number

    # json strings are kept verbatim while editing; image takes a Blob or a
    # stored reference; everything else passes through.
    return raw


def display_value(value: Any, field_type: Union[FieldType, str]) -> Optional[str]:
    """Render a stored value into editor text.

    Returns None for booleans, which render as a checkbox state.
    """
    if _field_type(field_type) == FieldType.BOOLEAN:
        return None
    if isinstance(value, Blob):
        # a freshly picked file has no text form
        return ""
    if isinstance(value, list):
        return ", ".join(stringify(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, indent=2, ensure_ascii=False, default=json_default)
    return stringify(value)


def checkbox_state(value: Any) -> bool:
    """Checkbox state of a boolean field; unset means unchecked."""
    return bool(value)


def is_image_reference(value: Any) -> bool:
    """True when an image field holds a previously uploaded asset reference."""
    return isinstance(value, str) and bool(value)


def is_absent(value: Any) -> bool:
    """A value is absent if it is None, an empty string or an empty list."""
    if value is None or value == "":
        return True
    return isinstance(value, list) and len(value) == 0


def validate_field(field: FieldDefinition, value: Any) -> Optional[TypedValue]:
    """Validate one field value at submit time.

    Returns:
        The typed value, or None when the value is absent on an optional field

    Raises:
        FieldValidationError: If a required value is absent or a present
            value does not fit the declared type
    """
    label = field.label or field.key

    if is_absent(value):
        if field.required:
            raise FieldValidationError(
                code="REQUIRED_FIELD",
                message=f"{label} is required",
                field_key=field.key,
                label=label,
            )
        return None

    if field.type == FieldType.NUMBER:
        number = parse_number(value)
        if number is None:
            raise FieldValidationError(
                code="INVALID_NUMBER",
                message=f"{label} must be a number",
                field_key=field.key,
                label=label,
            )
        return Number(number)

    if field.type == FieldType.BOOLEAN:
        return Bool(bool(value))

    if field.type == FieldType.MULTISELECT:
        if isinstance(value, list):
            return StringList([stringify(item) for item in value])
        return StringList(split_list(value))

    if field.type == FieldType.JSON:
        if isinstance(value, str):
            try:
                return Json(loads_json(value))
            except ValueError:
                raise FieldValidationError(
                    code="INVALID_JSON",
                    message=f"{label} must be valid JSON",
                    field_key=field.key,
                    label=label,
                ) from None
        return Json(value)

    if isinstance(value, Blob):
        return BlobValue(value)

    if isinstance(value, (dict, list)):
        return Json(value)

    return Text(stringify(value))


def build_metadata(
    fields: Iterable[FieldDefinition], values: Dict[str, Any]
) -> Dict[str, TypedValue]:
    """Validate every field of a schema and collect the typed value map.

    Fields are checked in schema order; the first failure aborts the whole
    submit. Keys in ``values`` that the schema does not define are dropped.
    """
    metadata: Dict[str, TypedValue] = {}
    for field in fields:
        typed = validate_field(field, values.get(field.key))
        if typed is not None:
            metadata[field.key] = typed
    return metadata
