"""
Field codec and metadata transport encoding.
"""

from .fields import (
    build_metadata,
    checkbox_state,
    display_value,
    is_absent,
    is_image_reference,
    parse_input,
    split_list,
    validate_field,
)
from .transport import (
    DEFAULT_NAMESPACE,
    FilePart,
    MetadataEnvelope,
    TextPart,
    append_metadata,
    build_entity_envelope,
    encode_metadata,
    parse_metadata_json,
)

__all__ = [
    "DEFAULT_NAMESPACE",
    "FilePart",
    "MetadataEnvelope",
    "TextPart",
    "append_metadata",
    "build_entity_envelope",
    "build_metadata",
    "checkbox_state",
    "display_value",
    "encode_metadata",
    "is_absent",
    "is_image_reference",
    "parse_input",
    "parse_metadata_json",
    "split_list",
    "validate_field",
]
