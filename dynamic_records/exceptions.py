"""
Error types for dynamic-records.

Every error carries a stable ``code`` for programmatic handling and a
human-readable ``message`` suitable for showing to an operator.

Taxonomy:
- Validation errors (FieldValidationError, SchemaValidationError,
  DefaultSchemaError) are raised synchronously before any network call.
- Transport errors (TransportError) are raised after a remote call fails.
- MetadataDecodeError is raised when loose metadata text is not a JSON object.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DynamicRecordsError(Exception):
    """Base class for all dynamic-records errors."""

    error = "dynamic_records_error"

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "error": self.error,
            "code": self.code,
            "message": self.message,
        }


class FieldValidationError(DynamicRecordsError):
    """A single field value failed submit-time validation.

    Attributes:
        field_key: Key of the offending field definition
        label: Label of the offending field, used in ``message``
    """

    error = "field_validation"

    def __init__(
        self,
        code: str,
        message: str,
        field_key: Optional[str] = None,
        label: Optional[str] = None,
    ):
        self.field_key = field_key
        self.label = label
        super().__init__(code, message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["field_key"] = self.field_key
        data["label"] = self.label
        return data


class SchemaValidationError(DynamicRecordsError):
    """An entity type (or entity envelope) failed validation before save."""

    error = "schema_validation"


class DefaultSchemaError(DynamicRecordsError):
    """Raised on an operation a default (reserved) entity type does not allow."""

    error = "default_schema"

    def __init__(self, slug: str, message: str):
        self.slug = slug
        super().__init__("DEFAULT_SCHEMA_IMMUTABLE", message)


class MetadataDecodeError(DynamicRecordsError, ValueError):
    """Loose metadata text could not be decoded into a JSON object."""

    error = "metadata_decode"

    def __init__(self, message: str = "Metadata must be valid JSON object"):
        super().__init__("INVALID_METADATA", message)


class TransportError(DynamicRecordsError):
    """The remote store rejected a request or could not be reached."""

    error = "transport"

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__("TRANSPORT_FAILED", message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data
