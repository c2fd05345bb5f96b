"""
Metadata transport encoding.

Entities may carry binary blobs, so their metadata travels as a multipart
envelope. Each metadata key becomes one or more parts named
``<namespace>.<key>``:

1. None and "" are not transmitted
2. a Blob becomes a file part keeping its content type
3. a non-empty list of Blobs becomes one file part per blob, same name
4. any other object (dict, non-blob list) becomes compact JSON text; a blob
   nested inside it serializes as an empty object
5. any other primitive becomes its string form

The receiver rebuilds a list from repeated part names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..exceptions import MetadataDecodeError
from ..schemas.values import Blob, dumps_compact, loads_json, stringify, unwrap

DEFAULT_NAMESPACE = "metadata"


@dataclass(frozen=True)
class TextPart:
    name: str
    value: str


@dataclass(frozen=True)
class FilePart:
    name: str
    blob: Blob


Part = Union[TextPart, FilePart]


@dataclass
class MetadataEnvelope:
    """Ordered multipart parts, ready to hand to httpx."""

    parts: List[Part] = field(default_factory=list)

    def add_text(self, name: str, value: str) -> None:
        self.parts.append(TextPart(name, value))

    def add_file(self, name: str, blob: Blob) -> None:
        self.parts.append(FilePart(name, blob))

    def names(self) -> List[str]:
        return [part.name for part in self.parts]

    def text_parts(self) -> List[TextPart]:
        return [part for part in self.parts if isinstance(part, TextPart)]

    def file_parts(self) -> List[FilePart]:
        return [part for part in self.parts if isinstance(part, FilePart)]

    def get_all(self, name: str) -> List[Union[str, Blob]]:
        """All values sent under ``name``, in order."""
        values: List[Union[str, Blob]] = []
        for part in self.parts:
            if part.name != name:
                continue
            values.append(part.value if isinstance(part, TextPart) else part.blob)
        return values

    def to_httpx(self) -> List[Tuple[str, Tuple[Optional[str], bytes, Optional[str]]]]:
        """Render as an httpx ``files`` argument.

        Text parts carry no filename, so the store reads them as plain form
        fields. Part order and repeated names are preserved, and the body is
        always multipart even when no blob is present.
        """
        files: List[Tuple[str, Tuple[Optional[str], bytes, Optional[str]]]] = []
        for part in self.parts:
            if isinstance(part, FilePart):
                filename = part.blob.filename or part.name
                files.append(
                    (part.name, (filename, part.blob.content, part.blob.content_type))
                )
            else:
                files.append((part.name, (None, part.value.encode("utf-8"), None)))
        return files


def _is_blob_list(value: Any) -> bool:
    return (
        isinstance(value, list)
        and len(value) > 0
        and all(isinstance(item, Blob) for item in value)
    )


def append_metadata(
    envelope: MetadataEnvelope,
    metadata: Optional[Mapping[str, Any]],
    namespace: str = DEFAULT_NAMESPACE,
) -> MetadataEnvelope:
    """Append the parts of ``metadata`` to ``envelope``."""
    if not metadata:
        return envelope

    for key, raw in metadata.items():
        value = unwrap(raw)
        if value is None or value == "":
            continue

        name = f"{namespace}.{key}"

        if isinstance(value, Blob):
            envelope.add_file(name, value)
            continue

        if _is_blob_list(value):
            for blob in value:
                envelope.add_file(name, blob)
            continue

        if isinstance(value, (dict, list, tuple)):
            envelope.add_text(
                name, dumps_compact(list(value) if isinstance(value, tuple) else value)
            )
            continue

        envelope.add_text(name, stringify(value))

    return envelope


def encode_metadata(
    metadata: Optional[Mapping[str, Any]], namespace: str = DEFAULT_NAMESPACE
) -> MetadataEnvelope:
    """Flatten a typed value map into a metadata envelope."""
    return append_metadata(MetadataEnvelope(), metadata, namespace)


def build_entity_envelope(
    type_id: str,
    name: str,
    metadata: Optional[Mapping[str, Any]],
    namespace: str = DEFAULT_NAMESPACE,
) -> MetadataEnvelope:
    """Envelope for an entity create/update: type_id, name, then metadata."""
    envelope = MetadataEnvelope()
    envelope.add_text("type_id", str(type_id))
    envelope.add_text("name", name)
    return append_metadata(envelope, metadata, namespace)


def parse_metadata_json(text: Optional[str]) -> Dict[str, Any]:
    """Decode loose metadata text into a map.

    Empty or whitespace-only text means "no extra metadata" and decodes to
    an empty map.

    Raises:
        MetadataDecodeError: If the text is not a JSON object
    """
    if not text or not text.strip():
        return {}

    try:
        parsed = loads_json(text)
    except ValueError:
        raise MetadataDecodeError() from None

    if not isinstance(parsed, dict):
        raise MetadataDecodeError()
    return parsed
