"""Test configuration and fixtures."""

import email
import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio

from dynamic_records.cache import ListingCache
from dynamic_records.client import StoreClient
from dynamic_records.registry import SchemaRegistry
from dynamic_records.schemas.entities import EntityType, FieldDefinition, FieldType
from dynamic_records.store import EntityStore


def parse_multipart(request: httpx.Request) -> List[Tuple[str, Optional[str], Optional[str], bytes]]:
    """Split a multipart request into (name, filename, content_type, body) parts."""
    content_type = request.headers["content-type"]
    raw = b"Content-Type: " + content_type.encode() + b"\r\n\r\n" + request.content
    message = email.message_from_bytes(raw)
    parts = []
    for part in message.get_payload():
        name = part.get_param("name", header="content-disposition")
        parts.append(
            (
                name,
                part.get_filename(),
                part.get("Content-Type"),
                part.get_payload(decode=True),
            )
        )
    return parts


class FakeStore:
    """In-memory stand-in for the remote record store."""

    def __init__(self, wrap_listings: bool = False):
        self.wrap_listings = wrap_listings
        self.types: Dict[str, Dict[str, Any]] = {}
        self.entities: Dict[str, Dict[str, Any]] = {}
        self.requests: List[httpx.Request] = []
        self.fail_with: Optional[Tuple[int, Any]] = None
        self._next_id = 0

    def _id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}{self._next_id}"

    def _listing(self, items: List[Dict[str, Any]]) -> httpx.Response:
        body: Any = {"data": items} if self.wrap_listings else items
        return httpx.Response(200, json=body)

    def add_type(self, name: str, slug: str, fields: List[Dict[str, Any]], description: str = "") -> Dict[str, Any]:
        type_id = self._id("t")
        record = {
            "id": type_id,
            "name": name,
            "slug": slug,
            "description": description,
            "fieldSchema": fields,
        }
        self.types[type_id] = record
        return record

    def add_entity(self, type_id: str, name: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        entity_id = self._id("e")
        record = {"id": entity_id, "type_id": type_id, "name": name, "metadata": metadata}
        self.entities[entity_id] = record
        return record

    def calls(self, method: str, prefix: str = "") -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path.startswith(prefix)
        ]

    def _entity_from_form(self, request: httpx.Request, entity_id: str) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        metadata: Dict[str, Any] = {}
        for name, filename, _, body in parse_multipart(request):
            if name.startswith("metadata."):
                key = name[len("metadata."):]
                value: Any = f"https://cdn.example/{filename}" if filename else body.decode()
                if key in metadata:
                    existing = metadata[key]
                    metadata[key] = (existing if isinstance(existing, list) else [existing]) + [value]
                else:
                    metadata[key] = value
            else:
                fields[name] = body.decode()
        return {
            "id": entity_id,
            "type_id": fields["type_id"],
            "name": fields["name"],
            "metadata": metadata,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.fail_with is not None:
            status, body = self.fail_with
            return httpx.Response(status, json=body)

        path = request.url.path
        method = request.method

        if path == "/custom-entity-types":
            if method == "GET":
                return self._listing(list(self.types.values()))
            if method == "POST":
                payload = json.loads(request.content)
                type_id = self._id("t")
                record = {"id": type_id, **payload}
                self.types[type_id] = record
                return httpx.Response(201, json=record)

        if path.startswith("/custom-entity-types/"):
            type_id = path.rsplit("/", 1)[1]
            if type_id not in self.types:
                return httpx.Response(404, json={"message": "Entity type not found"})
            if method == "PUT":
                payload = json.loads(request.content)
                self.types[type_id] = {"id": type_id, **payload}
                return httpx.Response(200, json=self.types[type_id])
            if method == "DELETE":
                del self.types[type_id]
                self.entities = {
                    k: v for k, v in self.entities.items() if v["type_id"] != type_id
                }
                return httpx.Response(204)

        if path.startswith("/custom-entities/type/") and method == "GET":
            type_id = path.rsplit("/", 1)[1]
            return self._listing(
                [e for e in self.entities.values() if e["type_id"] == type_id]
            )

        if path == "/custom-entities" and method == "POST":
            record = self._entity_from_form(request, self._id("e"))
            self.entities[record["id"]] = record
            return httpx.Response(201, json=record)

        if path.startswith("/custom-entities/"):
            entity_id = path.rsplit("/", 1)[1]
            if entity_id not in self.entities:
                return httpx.Response(404, json={"message": "Entity not found"})
            if method == "PUT":
                record = self._entity_from_form(request, entity_id)
                self.entities[entity_id] = record
                return httpx.Response(200, json=record)
            if method == "DELETE":
                del self.entities[entity_id]
                return httpx.Response(204)

        return httpx.Response(404, json={"detail": "Not Found"})


@pytest.fixture
def multipart_parts():
    """Multipart parser for requests captured by a mock transport."""
    return parse_multipart


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest_asyncio.fixture
async def client(fake_store: FakeStore) -> StoreClient:
    store_client = StoreClient(
        "http://store.test", transport=httpx.MockTransport(fake_store.handler)
    )
    yield store_client
    await store_client.close()


@pytest.fixture
def cache() -> ListingCache:
    return ListingCache()


@pytest.fixture
def registry(client: StoreClient, cache: ListingCache) -> SchemaRegistry:
    return SchemaRegistry(client, cache)


@pytest.fixture
def entity_store(client: StoreClient, cache: ListingCache) -> EntityStore:
    return EntityStore(client, cache)


@pytest.fixture
def certifications_type() -> EntityType:
    """The certifications category used across scenarios."""
    return EntityType(
        id="t-cert",
        name="Certifications",
        slug="certifications",
        fields=[
            FieldDefinition(key="issuer", label="issuer", type=FieldType.TEXT, required=True),
        ],
    )
