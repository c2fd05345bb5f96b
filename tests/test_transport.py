"""Unit tests for the metadata transport encoder."""

import pytest

from dynamic_records.codec.transport import (
    FilePart,
    MetadataEnvelope,
    TextPart,
    build_entity_envelope,
    encode_metadata,
    parse_metadata_json,
)
from dynamic_records.exceptions import MetadataDecodeError
from dynamic_records.schemas.values import Blob, BlobValue, Bool, Json, Number, StringList, Text


class TestEncodeMetadata:
    """Tests for flattening metadata into named parts."""

    def test_primitives_become_text(self):
        envelope = encode_metadata({"issuer": "AWS", "years": 3, "active": True})
        assert envelope.parts == [
            TextPart("metadata.issuer", "AWS"),
            TextPart("metadata.years", "3"),
            TextPart("metadata.active", "true"),
        ]

    def test_false_is_transmitted(self):
        envelope = encode_metadata({"active": False})
        assert envelope.get_all("metadata.active") == ["false"]

    def test_none_and_empty_string_are_skipped(self):
        envelope = encode_metadata({"a": None, "b": "", "c": 0})
        assert envelope.names() == ["metadata.c"]
        assert envelope.get_all("metadata.c") == ["0"]

    def test_integral_float_has_no_fraction(self):
        assert encode_metadata({"n": 2.0}).get_all("metadata.n") == ["2"]

    def test_string_list_is_compact_json(self):
        envelope = encode_metadata({"tags": ["a", "b"]})
        assert envelope.get_all("metadata.tags") == ['["a","b"]']

    def test_dict_is_compact_json(self):
        envelope = encode_metadata({"extra": {"k": [1, 2]}})
        assert envelope.get_all("metadata.extra") == ['{"k":[1,2]}']

    def test_blob_nested_in_list_is_empty_object(self):
        envelope = encode_metadata({"mix": [Blob(b"x", "image/png", "a.png"), "x"]})
        assert envelope.get_all("metadata.mix") == ['[{},"x"]']
        assert envelope.file_parts() == []

    def test_blob_nested_in_dict_is_empty_object(self):
        envelope = encode_metadata({"extra": {"a": Blob(b"x")}})
        assert envelope.get_all("metadata.extra") == ['{"a":{}}']

    def test_empty_list_is_json_text(self):
        assert encode_metadata({"tags": []}).get_all("metadata.tags") == ["[]"]

    def test_blob_becomes_file_part(self):
        blob = Blob(b"\x89PNG", "image/png", "logo.png")
        envelope = encode_metadata({"logo": blob})
        assert envelope.parts == [FilePart("metadata.logo", blob)]

    def test_blob_list_repeats_name(self):
        first = Blob(b"1", "image/png", "a.png")
        second = Blob(b"2", "image/jpeg", "b.jpg")
        envelope = encode_metadata({"gallery": [first, second]})
        assert envelope.names() == ["metadata.gallery", "metadata.gallery"]
        assert envelope.get_all("metadata.gallery") == [first, second]

    def test_typed_values_are_unwrapped(self):
        blob = Blob(b"x", "image/png")
        envelope = encode_metadata(
            {
                "a": Text("hi"),
                "b": Number(1.5),
                "c": Bool(False),
                "d": StringList(["x"]),
                "e": Json({"z": None}),
                "f": BlobValue(blob),
            }
        )
        assert envelope.get_all("metadata.a") == ["hi"]
        assert envelope.get_all("metadata.b") == ["1.5"]
        assert envelope.get_all("metadata.c") == ["false"]
        assert envelope.get_all("metadata.d") == ['["x"]']
        assert envelope.get_all("metadata.e") == ['{"z":null}']
        assert envelope.get_all("metadata.f") == [blob]

    def test_custom_namespace(self):
        envelope = encode_metadata({"issuer": "AWS"}, namespace="meta")
        assert envelope.names() == ["meta.issuer"]

    @pytest.mark.parametrize("metadata", [None, {}])
    def test_empty_metadata_has_no_parts(self, metadata):
        assert encode_metadata(metadata).parts == []


class TestEntityEnvelope:
    """Tests for entity create/update envelopes."""

    def test_identity_parts_come_first(self):
        envelope = build_entity_envelope("t1", "AWS SA", {"issuer": "AWS"})
        assert envelope.names() == ["type_id", "name", "metadata.issuer"]
        assert envelope.get_all("type_id") == ["t1"]

    def test_non_string_type_id(self):
        envelope = build_entity_envelope(7, "x", None)
        assert envelope.get_all("type_id") == ["7"]


class TestToHttpx:
    """Tests for rendering an envelope as httpx files."""

    def test_text_parts_have_no_filename(self):
        envelope = MetadataEnvelope()
        envelope.add_text("name", "Zoë")
        assert envelope.to_httpx() == [("name", (None, "Zoë".encode("utf-8"), None))]

    def test_file_part_filename_falls_back_to_name(self):
        envelope = MetadataEnvelope()
        envelope.add_file("metadata.logo", Blob(b"x", "image/png"))
        assert envelope.to_httpx() == [
            ("metadata.logo", ("metadata.logo", b"x", "image/png"))
        ]

    def test_order_is_preserved(self):
        envelope = build_entity_envelope(
            "t1", "n", {"logo": Blob(b"x", "image/png", "l.png"), "issuer": "AWS"}
        )
        assert [name for name, _ in envelope.to_httpx()] == [
            "type_id",
            "name",
            "metadata.logo",
            "metadata.issuer",
        ]
        assert envelope.text_parts()[-1] == TextPart("metadata.issuer", "AWS")
        assert len(envelope.file_parts()) == 1


class TestParseMetadataJson:
    """Tests for decoding loose metadata text."""

    @pytest.mark.parametrize("text", [None, "", "   \n"])
    def test_blank_is_empty_map(self, text):
        assert parse_metadata_json(text) == {}

    def test_object_is_returned(self):
        assert parse_metadata_json('{"a": 1}') == {"a": 1}

    @pytest.mark.parametrize("text", ["{nope", "[1, 2]", "42", '"text"', "null"])
    def test_non_object_fails(self, text):
        with pytest.raises(MetadataDecodeError) as exc_info:
            parse_metadata_json(text)
        assert exc_info.value.message == "Metadata must be valid JSON object"
        assert exc_info.value.code == "INVALID_METADATA"

    @pytest.mark.parametrize("text", ["NaN", "Infinity", "-Infinity", '{"a": Infinity}'])
    def test_non_finite_constants_fail(self, text):
        with pytest.raises(MetadataDecodeError) as exc_info:
            parse_metadata_json(text)
        assert exc_info.value.code == "INVALID_METADATA"

    def test_decode_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            parse_metadata_json("[]")
