"""
dynamic-records

Runtime-defined record schemas: a typed field codec, a multipart metadata
encoder, and registry/store clients for a remote record store.
"""

import importlib.metadata

__author__ = "George Loudon"
__email__ = "george@example.com"
__version__ = importlib.metadata.version("dynamic-records")

from .builder import MetadataBuilder, MetadataRow, MetadataValueType, SchemaMetadataEditor
from .client import StoreClient, normalize_collection
from .codec import (
    MetadataEnvelope,
    build_metadata,
    display_value,
    encode_metadata,
    parse_input,
    parse_metadata_json,
    validate_field,
)
from .defaults import DEFAULT_SCHEMAS, DEFAULT_SCHEMA_SLUGS
from .exceptions import (
    DefaultSchemaError,
    DynamicRecordsError,
    FieldValidationError,
    MetadataDecodeError,
    SchemaValidationError,
    TransportError,
)
from .registry import SchemaDraft, SchemaRegistry, slugify
from .schemas import Blob, Entity, EntityType, FieldDefinition, FieldType
from .store import EntityForm, EntityStore

__all__ = [
    "DEFAULT_SCHEMAS",
    "DEFAULT_SCHEMA_SLUGS",
    "Blob",
    "DefaultSchemaError",
    "DynamicRecordsError",
    "Entity",
    "EntityForm",
    "EntityStore",
    "EntityType",
    "FieldDefinition",
    "FieldType",
    "FieldValidationError",
    "MetadataBuilder",
    "MetadataDecodeError",
    "MetadataEnvelope",
    "MetadataRow",
    "MetadataValueType",
    "SchemaDraft",
    "SchemaMetadataEditor",
    "SchemaRegistry",
    "SchemaValidationError",
    "StoreClient",
    "TransportError",
    "build_metadata",
    "display_value",
    "encode_metadata",
    "normalize_collection",
    "parse_input",
    "parse_metadata_json",
    "slugify",
    "validate_field",
]
