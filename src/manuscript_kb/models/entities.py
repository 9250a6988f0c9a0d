"""Entity and appearance records."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EntityType(str, Enum):
    """Kinds of catalogued entity."""

    CHARACTER = "character"
    LOCATION = "location"
    ORGANIZATION = "organization"
    ARTIFACT = "artifact"
    CONCEPT = "concept"
    EVENT = "event"


class Entity(BaseModel):
    """A catalogued character, location, organization, artifact, concept or event."""

    id: int
    project_id: int
    type: EntityType
    name: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class Appearance(BaseModel):
    """A fact recording that an entity is mentioned within a chapter."""

    id: int
    entity_id: int
    manuscript_id: int
    chapter_id: int
    text_range_start: int | None = None
    text_range_end: int | None = None
    notes: str | None = None
