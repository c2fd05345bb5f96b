"""
Default (built-in) entity type table.

These slugs name the built-in record categories. Their name and slug are
reserved; only their field list can be edited, and the type may not exist
in the store until its schema is first saved.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional, Tuple


class DefaultSchema(NamedTuple):
    slug: str
    name: str


DEFAULT_SCHEMAS: Tuple[DefaultSchema, ...] = (
    DefaultSchema("bio", "Bio"),
    DefaultSchema("skills", "Skills"),
    DefaultSchema("experience", "Experience"),
    DefaultSchema("education", "Education"),
    DefaultSchema("project", "Project"),
)

DEFAULT_SCHEMA_SLUGS = frozenset(schema.slug for schema in DEFAULT_SCHEMAS)

_BY_SLUG: Mapping[str, DefaultSchema] = MappingProxyType(
    {schema.slug: schema for schema in DEFAULT_SCHEMAS}
)


def is_default_slug(slug: Optional[str]) -> bool:
    return bool(slug) and slug in DEFAULT_SCHEMA_SLUGS


def get_default_schema(slug: str) -> Optional[DefaultSchema]:
    return _BY_SLUG.get(slug)
