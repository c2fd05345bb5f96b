"""
Schema registry.

Owns the catalog of entity types. Two lifecycles share one collection:

- Default types: slugs from the reserved table in ``defaults``. Name and slug
  never change; the field list does. Saving a default type is an explicit
  upsert because the store may not hold it yet.
- Custom types: fully user-authored, mutable and deletable. Deleting one
  cascades to all of its entities on the store side; callers confirm first.

Edits happen in a ``SchemaDraft``, which holds the field list as an
index-addressed arena until save.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

import structlog

from .cache import ENTITIES_KEY, ENTITY_TYPES_KEY, ListingCache, entities_key
from .client import StoreClient
from .defaults import DEFAULT_SCHEMAS, get_default_schema, is_default_slug
from .exceptions import DefaultSchemaError, SchemaValidationError
from .schemas.entities import EntityType, EntityTypePayload, FieldDefinition, FieldType

logger = structlog.get_logger()

ENTITY_TYPES_PATH = "/custom-entity-types"

_INVALID_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def slugify(value: str) -> str:
    """
    Derive a URL-safe slug.

    - Lowercase and trim
    - Strip characters outside [a-z0-9], whitespace and hyphen
    - Collapse whitespace runs into one hyphen, then repeated hyphens

    Examples:
        "Certifications" -> "certifications"
        "  My Cool  Type! " -> "my-cool-type"
        "a -- b" -> "a-b"
    """
    slug = value.lower().strip()
    slug = _INVALID_SLUG_CHARS.sub("", slug)
    slug = _WHITESPACE.sub("-", slug)
    return _HYPHENS.sub("-", slug)


def empty_field() -> FieldDefinition:
    return FieldDefinition(
        key="", label="", type=FieldType.TEXT, required=False, private=False, options=[]
    )


def normalize_field(definition: FieldDefinition) -> FieldDefinition:
    """Trim key and label and drop empty options."""
    return definition.model_copy(
        update={
            "key": definition.key.strip(),
            "label": definition.label.strip(),
            "options": [option for option in definition.options if option],
        }
    )


def find_duplicate_keys(fields: List[FieldDefinition]) -> List[str]:
    """Keys that occur more than once (after trimming), in first-repeat order."""
    keys = [definition.key.strip() for definition in fields]
    if len(keys) == len(set(keys)):
        return []
    seen = set()
    duplicates: List[str] = []
    for key in keys:
        if key in seen and key not in duplicates:
            duplicates.append(key)
        seen.add(key)
    return duplicates


class SchemaDraft:
    """One edit session of an entity type.

    ``fields`` is addressed by position for the duration of the session;
    the list is only serialized (in its current order) by ``to_payload``.
    A draft opened on a default type is locked: its name and slug cannot be
    changed, only its field list.
    """

    def __init__(
        self,
        name: str = "",
        slug: str = "",
        description: str = "",
        fields: Optional[List[FieldDefinition]] = None,
        editing: Optional[EntityType] = None,
        reserved_slug: Optional[str] = None,
    ):
        self.name = name
        self.slug = slug
        self.description = description
        self.fields: List[FieldDefinition] = [f.model_copy() for f in fields or []]
        if not self.fields:
            self.fields.append(empty_field())
        self.editing = editing
        self.reserved_slug = reserved_slug if is_default_slug(reserved_slug) else None

    @classmethod
    def new(cls) -> "SchemaDraft":
        return cls()

    @classmethod
    def from_type(cls, entity_type: EntityType) -> "SchemaDraft":
        """Open an existing type; its slug is kept exactly as stored."""
        return cls(
            name=entity_type.name,
            slug=entity_type.slug,
            description=entity_type.description or "",
            fields=entity_type.fields,
            editing=entity_type,
            reserved_slug=entity_type.slug,
        )

    @classmethod
    def for_default(cls, slot: "DefaultSchemaSlot") -> "SchemaDraft":
        """Open a default type, materialized or not."""
        existing = slot.entity_type
        return cls(
            name=existing.name if existing else slot.name,
            slug=slot.slug,
            description=(existing.description if existing else "")
            or f"{slot.name} custom field schema",
            fields=existing.fields if existing else None,
            editing=existing,
            reserved_slug=slot.slug,
        )

    @property
    def locked(self) -> bool:
        return self.reserved_slug is not None

    @property
    def is_new(self) -> bool:
        return self.editing is None

    def set_name(self, name: str) -> None:
        """Change the name; a new draft keeps its slug derived from the name
        until the operator edits the slug by hand."""
        if self.locked:
            raise DefaultSchemaError(
                self.reserved_slug, f"The name of '{self.reserved_slug}' cannot be changed"
            )
        follow = self.is_new and self.slug == slugify(self.name)
        self.name = name
        if follow:
            self.slug = slugify(name)

    def set_slug(self, slug: str) -> None:
        if self.locked:
            raise DefaultSchemaError(
                self.reserved_slug, f"The slug of '{self.reserved_slug}' cannot be changed"
            )
        self.slug = slugify(slug)

    def set_description(self, description: str) -> None:
        self.description = description

    # Field arena

    def add_field(self, **values: Any) -> int:
        """Append a field and return its index."""
        definition = empty_field()
        if values:
            definition = FieldDefinition.model_validate({**definition.model_dump(), **values})
        self.fields.append(definition)
        return len(self.fields) - 1

    def update_field_at(self, index: int, **changes: Any) -> FieldDefinition:
        current = self.fields[index]
        updated = FieldDefinition.model_validate({**current.model_dump(), **changes})
        self.fields[index] = updated
        return updated

    def remove_field_at(self, index: int) -> None:
        """Remove a field; the arena never becomes empty."""
        del self.fields[index]
        if not self.fields:
            self.fields.append(empty_field())

    def move_field(self, source: int, target: int) -> None:
        definition = self.fields.pop(source)
        self.fields.insert(target, definition)

    def to_payload(self) -> EntityTypePayload:
        """Validate the draft and build the wire payload.

        Raises:
            SchemaValidationError: If name/slug are missing, a field lacks a
                key or label, or two fields share a key
        """
        fields = [normalize_field(definition) for definition in self.fields]

        name = self.name.strip()
        slug = self.slug.strip()
        if self.locked:
            default = get_default_schema(self.reserved_slug)
            slug = self.reserved_slug
            name = name or (default.name if default else slug)

        if not name or not slug:
            raise SchemaValidationError(
                code="MISSING_NAME", message="Name and slug are required"
            )

        if any(not definition.key or not definition.label for definition in fields):
            raise SchemaValidationError(
                code="INCOMPLETE_FIELD", message="Every field needs a key and label"
            )

        duplicates = find_duplicate_keys(fields)
        if duplicates:
            raise SchemaValidationError(
                code="DUPLICATE_FIELD_KEY",
                message=f"Field keys must be unique: {', '.join(duplicates)}",
            )

        return EntityTypePayload(
            name=name,
            slug=slugify(slug),
            description=self.description.strip(),
            field_schema=fields,
        )


@dataclass
class DefaultSchemaSlot:
    """A default type together with its stored counterpart, if any."""

    slug: str
    name: str
    entity_type: Optional[EntityType] = None

    @property
    def materialized(self) -> bool:
        return self.entity_type is not None


@dataclass
class SchemaCatalog:
    defaults: List[DefaultSchemaSlot] = field(default_factory=list)
    custom: List[EntityType] = field(default_factory=list)


class SchemaRegistry:
    """CRUD of entity types against the remote store."""

    def __init__(self, client: StoreClient, cache: Optional[ListingCache] = None):
        self.client = client
        self.cache = cache if cache is not None else client.cache

    async def list_types(self, refresh: bool = False) -> List[EntityType]:
        """All entity types, from cache unless ``refresh`` or invalidated."""
        if not refresh and ENTITY_TYPES_KEY in self.cache:
            return self.cache.get(ENTITY_TYPES_KEY)

        items = await self.client.get_collection(
            ENTITY_TYPES_PATH, "fetch custom entity types"
        )
        types = [EntityType.model_validate(item) for item in items]
        self.cache.set(ENTITY_TYPES_KEY, types)
        logger.debug("entity_types_fetched", count=len(types))
        return types

    async def get(self, type_id: str) -> Optional[EntityType]:
        for entity_type in await self.list_types():
            if entity_type.id == type_id:
                return entity_type
        return None

    async def get_by_slug(self, slug: str) -> Optional[EntityType]:
        for entity_type in await self.list_types():
            if entity_type.slug == slug:
                return entity_type
        return None

    async def field_schema(self, slug: str) -> List[FieldDefinition]:
        """Field definitions of the type with ``slug`` (empty if unknown)."""
        entity_type = await self.get_by_slug(slug)
        return list(entity_type.fields) if entity_type else []

    async def classify(self) -> SchemaCatalog:
        """Split the collection into default slots and custom types."""
        types = await self.list_types()
        by_slug = {entity_type.slug: entity_type for entity_type in types}
        return SchemaCatalog(
            defaults=[
                DefaultSchemaSlot(schema.slug, schema.name, by_slug.get(schema.slug))
                for schema in DEFAULT_SCHEMAS
            ],
            custom=[t for t in types if not is_default_slug(t.slug)],
        )

    async def default_slot(self, slug: str) -> DefaultSchemaSlot:
        default = get_default_schema(slug)
        if default is None:
            raise DefaultSchemaError(slug, f"'{slug}' is not a default schema")
        return DefaultSchemaSlot(default.slug, default.name, await self.get_by_slug(slug))

    async def create(self, payload: EntityTypePayload) -> EntityType:
        body = await self.client.send_json(
            "POST", ENTITY_TYPES_PATH, payload.to_wire(), "create custom entity type"
        )
        created = EntityType.model_validate(body)
        self.cache.invalidate(ENTITY_TYPES_KEY)
        logger.info("entity_type_created", type_id=created.id, slug=created.slug)
        return created

    async def update(self, type_id: str, payload: EntityTypePayload) -> EntityType:
        body = await self.client.send_json(
            "PUT",
            f"{ENTITY_TYPES_PATH}/{type_id}",
            payload.to_wire(),
            "update custom entity type",
        )
        updated = EntityType.model_validate(body)
        self.cache.invalidate(ENTITY_TYPES_KEY)
        self.cache.invalidate(ENTITIES_KEY)
        logger.info("entity_type_updated", type_id=type_id, slug=updated.slug)
        return updated

    async def save(self, draft: SchemaDraft) -> EntityType:
        """Validate a draft and persist it.

        - Default slug: update the stored type if the registry holds one,
          else create it. Name and slug are always the reserved ones.
        - Existing custom type: update.
        - Otherwise: create.

        Raises:
            SchemaValidationError: If the draft is invalid
            DefaultSchemaError: If a custom type would take a reserved slug
        """
        payload = draft.to_payload()

        if is_default_slug(payload.slug):
            if draft.editing is not None and draft.editing.slug != payload.slug:
                raise DefaultSchemaError(
                    payload.slug, f"The slug '{payload.slug}' is reserved"
                )
            return await self._upsert_default(payload, draft.editing)

        if draft.editing is not None:
            return await self.update(draft.editing.id, payload)
        return await self.create(payload)

    async def _upsert_default(
        self, payload: EntityTypePayload, existing: Optional[EntityType]
    ) -> EntityType:
        if existing is None:
            existing = await self.get_by_slug(payload.slug)

        default = get_default_schema(payload.slug)
        reserved = payload.model_copy(
            update={
                "slug": payload.slug,
                "name": existing.name if existing else default.name,
            }
        )

        if existing is not None:
            logger.info("default_schema_update", slug=payload.slug, type_id=existing.id)
            return await self.update(existing.id, reserved)

        logger.info("default_schema_materialize", slug=payload.slug)
        return await self.create(reserved)

    async def delete(self, type_id: str) -> None:
        """Delete a custom type. All of its entities go with it on the store.

        Raises:
            DefaultSchemaError: If ``type_id`` is a default type
        """
        entity_type = await self.get(type_id)
        if entity_type is not None and is_default_slug(entity_type.slug):
            raise DefaultSchemaError(
                entity_type.slug, f"Default schema '{entity_type.slug}' cannot be deleted"
            )

        await self.client.delete(
            f"{ENTITY_TYPES_PATH}/{type_id}", "delete custom entity type"
        )
        self.cache.invalidate(ENTITY_TYPES_KEY)
        self.cache.invalidate(entities_key(type_id))
        logger.info("entity_type_deleted", type_id=type_id)
