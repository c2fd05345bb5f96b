"""
Entity type and entity schemas.

These models describe what the remote store sends and accepts:
- EntityType: a named list of field definitions (a record "shape")
- Entity: a record that references its EntityType by ``type_id``
- EntityTypePayload: the JSON body of an entity type create/update
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class FieldType(str, Enum):
    """Declared type of a field definition."""

    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    SELECT = "select"
    MULTISELECT = "multiselect"
    URL = "url"
    JSON = "json"
    IMAGE = "image"


# Types whose ``options`` list is meaningful
OPTION_FIELD_TYPES = {FieldType.SELECT, FieldType.MULTISELECT}


class FieldDefinition(BaseModel):
    """One typed, labeled slot within an entity type."""

    model_config = ConfigDict(extra="ignore")

    key: str = Field(..., description="Storage key, unique within its entity type")
    label: str = Field("", description="Human-readable label")
    type: FieldType = Field(FieldType.TEXT, description="Declared field type")
    required: bool = Field(False, description="Value must be present on submit")
    private: bool = Field(False, description="Hidden from public views")
    options: List[str] = Field(
        default_factory=list, description="Choices for select/multiselect fields"
    )

    @field_validator("options", mode="before")
    @classmethod
    def _none_options(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("required", "private", mode="before")
    @classmethod
    def _none_flags(cls, value: Any) -> Any:
        return False if value is None else value


def _coerce_id(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class EntityType(BaseModel):
    """A named, versionless definition of the metadata fields of a record category.

    The store may send the field list as ``fieldSchema`` or ``fields``;
    both are read into ``fields``.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    name: str
    slug: str
    description: str = ""
    fields: List[FieldDefinition] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @model_validator(mode="before")
    @classmethod
    def _normalize_field_list(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            schema = data.pop("fieldSchema", None)
            if schema is not None:
                data["fields"] = schema
            elif data.get("fields") is None:
                data["fields"] = []
            if data.get("description") is None:
                data["description"] = ""
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return _coerce_id(value)

    def field(self, key: str) -> Optional[FieldDefinition]:
        """Return the field definition with ``key``, if any."""
        for definition in self.fields:
            if definition.key == key:
                return definition
        return None


class Entity(BaseModel):
    """A record instance that references its entity type."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    type_id: str
    name: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("id", "type_id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return _coerce_id(value)

    @field_validator("metadata", mode="before")
    @classmethod
    def _none_metadata(cls, value: Any) -> Any:
        return {} if value is None else value


class EntityTypePayload(BaseModel):
    """JSON body sent to create or update an entity type."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    slug: str
    description: str = ""
    field_schema: List[FieldDefinition] = Field(
        default_factory=list, alias="fieldSchema"
    )

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with wire field names."""
        return self.model_dump(by_alias=True, mode="json")
