"""Data models for catalogued entities and manuscript text."""

from manuscript_kb.models.entities import Appearance, Entity, EntityType
from manuscript_kb.models.manuscript import Chapter, Manuscript, Project

__all__ = ["Appearance", "Entity", "EntityType", "Chapter", "Manuscript", "Project"]
