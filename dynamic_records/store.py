"""
Entity store.

CRUD of entity records, always scoped to one entity type. Create and update
run every field definition of the owning type through submit-time
validation before anything is encoded or sent.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog

from .cache import ENTITY_TYPES_KEY, ListingCache, entities_key
from .client import StoreClient
from .codec.fields import (
    build_metadata,
    checkbox_state,
    display_value,
    parse_input,
)
from .codec.transport import DEFAULT_NAMESPACE, MetadataEnvelope, build_entity_envelope
from .exceptions import SchemaValidationError
from .schemas.entities import Entity, EntityType, FieldType

logger = structlog.get_logger()

ENTITIES_PATH = "/custom-entities"


def validate_entity_name(name: Optional[str]) -> str:
    """Return the trimmed entity name.

    Raises:
        SchemaValidationError: If the name is empty
    """
    trimmed = (name or "").strip()
    if not trimmed:
        raise SchemaValidationError(code="MISSING_NAME", message="Entry name is required")
    return trimmed


def build_entity_payload(
    entity_type: EntityType,
    name: str,
    values: Dict[str, Any],
    namespace: str = DEFAULT_NAMESPACE,
) -> MetadataEnvelope:
    """Validate a submission and encode it as a multipart envelope.

    Raises:
        SchemaValidationError: If the name is empty
        FieldValidationError: If any field value fails validation
    """
    trimmed = validate_entity_name(name)
    metadata = build_metadata(entity_type.fields, values)
    return build_entity_envelope(entity_type.id, trimmed, metadata, namespace)


class EntityStore:
    """Entity CRUD against the remote store."""

    def __init__(
        self,
        client: StoreClient,
        cache: Optional[ListingCache] = None,
        namespace: str = DEFAULT_NAMESPACE,
    ):
        self.client = client
        self.cache = cache if cache is not None else client.cache
        self.namespace = namespace

    async def list(self, type_id: str, refresh: bool = False) -> List[Entity]:
        """Entities of one type. There is no cross-type listing."""
        key = entities_key(type_id)
        if not refresh and key in self.cache:
            return self.cache.get(key)

        items = await self.client.get_collection(
            f"{ENTITIES_PATH}/type/{type_id}", "fetch custom entities"
        )
        entities = [Entity.model_validate(item) for item in items]
        self.cache.set(key, entities)
        logger.debug("entities_fetched", type_id=type_id, count=len(entities))
        return entities

    async def create(
        self, entity_type: EntityType, name: str, values: Dict[str, Any]
    ) -> Entity:
        envelope = build_entity_payload(entity_type, name, values, self.namespace)
        body = await self.client.send_form(
            "POST", ENTITIES_PATH, envelope, "create custom entity"
        )
        created = Entity.model_validate(body)
        self.cache.invalidate(entities_key(entity_type.id))
        self.cache.invalidate(ENTITY_TYPES_KEY)
        logger.info("entity_created", type_id=entity_type.id, entity_id=created.id)
        return created

    async def update(
        self,
        entity_id: str,
        entity_type: EntityType,
        name: str,
        values: Dict[str, Any],
    ) -> Entity:
        envelope = build_entity_payload(entity_type, name, values, self.namespace)
        body = await self.client.send_form(
            "PUT", f"{ENTITIES_PATH}/{entity_id}", envelope, "update custom entity"
        )
        updated = Entity.model_validate(body)
        self.cache.invalidate(entities_key(entity_type.id))
        logger.info("entity_updated", type_id=entity_type.id, entity_id=entity_id)
        return updated

    async def delete(self, entity_id: str, type_id: str) -> None:
        """Delete an entity. ``type_id`` only selects the listing to invalidate."""
        await self.client.delete(f"{ENTITIES_PATH}/{entity_id}", "delete custom entity")
        self.cache.invalidate(entities_key(type_id))
        logger.info("entity_deleted", type_id=type_id, entity_id=entity_id)


class EntityForm:
    """Editable state of one entity against its type's current field list."""

    def __init__(self, entity_type: EntityType):
        self.entity_type = entity_type
        self.name = ""
        self.values: Dict[str, Any] = {}
        self.editing: Optional[Entity] = None

    def reset(self) -> None:
        self.name = ""
        self.values = {}
        self.editing = None

    def load(self, entity: Entity) -> None:
        """Start editing a stored entity."""
        self.editing = entity
        self.name = entity.name
        self.values = dict(entity.metadata)

    def set_name(self, name: str) -> None:
        self.name = name

    def set_value(self, key: str, raw: Any) -> Any:
        """Store editor input for ``key`` through the field codec."""
        definition = self.entity_type.field(key)
        if definition is None:
            raise KeyError(key)
        value = parse_input(definition.type, raw)
        self.values[key] = value
        return value

    def display(self, key: str) -> Any:
        """Editor value for ``key``: text, or checkbox state for booleans."""
        definition = self.entity_type.field(key)
        if definition is None:
            raise KeyError(key)
        value = self.values.get(key)
        if definition.type == FieldType.BOOLEAN:
            return checkbox_state(value)
        return display_value(value, definition.type)

    async def submit(self, store: EntityStore) -> Entity:
        """Create or update, then clear the form."""
        if self.editing is not None:
            saved = await store.update(
                self.editing.id, self.entity_type, self.name, self.values
            )
        else:
            saved = await store.create(self.entity_type, self.name, self.values)
        self.reset()
        return saved
