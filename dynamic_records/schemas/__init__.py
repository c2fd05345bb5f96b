"""
Data model for runtime-defined record schemas.
"""

from .entities import (
    OPTION_FIELD_TYPES,
    Entity,
    EntityType,
    EntityTypePayload,
    FieldDefinition,
    FieldType,
)
from .values import (
    Blob,
    BlobValue,
    Bool,
    Json,
    Number,
    StringList,
    Text,
    TypedValue,
    parse_number,
    stringify,
    unwrap,
)

__all__ = [
    "OPTION_FIELD_TYPES",
    "Blob",
    "BlobValue",
    "Bool",
    "Entity",
    "EntityType",
    "EntityTypePayload",
    "FieldDefinition",
    "FieldType",
    "Json",
    "Number",
    "StringList",
    "Text",
    "TypedValue",
    "parse_number",
    "stringify",
    "unwrap",
]
