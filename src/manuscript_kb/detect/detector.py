"""Known-entity detection.

Scans chapter text for mentions of catalogued entities, records one
appearance per (entity, chapter) and reports entities that turn up in a book
other than the ones they were already linked to.
"""

import logging
from dataclasses import asdict, dataclass, field

from ..models.entities import EntityType
from ..store.base import DETECTED_NOTE, KnowledgeStore
from .terms import SearchEntry, build_search_terms, find_whole_word

logger = logging.getLogger(__name__)


@dataclass
class DetectionResult:
    """One entity matched in one chapter."""

    entity_id: int
    entity_name: str
    entity_type: EntityType
    manuscript_id: int
    chapter_id: int
    chapter_title: str
    offset: int
    is_new: bool

    def to_dict(self) -> dict:
        data = asdict(self)
        data["entity_type"] = self.entity_type.value
        return data


@dataclass
class CrossBookEntity:
    """An entity already linked to other books, now detected in a new one."""

    entity_id: int
    entity_name: str
    entity_type: EntityType
    existing_books: list[str] = field(default_factory=list)
    new_books: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["entity_type"] = self.entity_type.value
        return data


@dataclass
class DetectionSummary:
    """Outcome of a detection run."""

    total_matches: int = 0
    new_appearances: int = 0
    cross_book_entities: list[CrossBookEntity] = field(default_factory=list)
    details: list[DetectionResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_matches": self.total_matches,
            "new_appearances": self.new_appearances,
            "cross_book_entities": [e.to_dict() for e in self.cross_book_entities],
            "details": [d.to_dict() for d in self.details],
        }


def _book_title(titles: dict[int, str], manuscript_id: int) -> str:
    return titles.get(manuscript_id, f"Manuscript #{manuscript_id}")


class EntityDetector:
    """Link catalogued entities into manuscript chapters.

    Usage:
        detector = EntityDetector(store)
        summary = detector.detect(project_id, manuscript_id)
    """

    def __init__(self, store: KnowledgeStore):
        self.store = store

    def detect(self, project_id: int, manuscript_id: int) -> DetectionSummary:
        """Scan every chapter of one manuscript for known entities.

        Re-running on unchanged text and entities creates no new appearances.

        Args:
            project_id: Project owning the entities
            manuscript_id: Manuscript to scan

        Returns:
            DetectionSummary with per-chapter details and cross-book report
        """
        entities = self.store.list_entities(project_id)
        if not entities:
            return DetectionSummary()

        chapters = self.store.list_chapters(manuscript_id)
        existing = self.store.appearance_pairs(manuscript_id)
        entries = build_search_terms(entities)

        details: list[DetectionResult] = []
        new_appearances = 0

        for chapter in chapters:
            body = (chapter.body or "").lower()
            for entry in entries:
                match = self._first_match(body, entry)
                if match is None:
                    continue
                offset, term = match

                key = (entry.entity.id, chapter.id)
                is_new = False
                if key not in existing:
                    is_new = self.store.add_appearance(
                        entry.entity.id,
                        manuscript_id,
                        chapter.id,
                        offset,
                        offset + len(term),
                        DETECTED_NOTE,
                    )
                    existing.add(key)
                    if is_new:
                        new_appearances += 1

                details.append(
                    DetectionResult(
                        entity_id=entry.entity.id,
                        entity_name=entry.entity.name,
                        entity_type=entry.entity.type,
                        manuscript_id=manuscript_id,
                        chapter_id=chapter.id,
                        chapter_title=chapter.title,
                        offset=offset,
                        is_new=is_new,
                    )
                )

        summary = DetectionSummary(
            total_matches=len(details),
            new_appearances=new_appearances,
            cross_book_entities=self._cross_book_summary(project_id, manuscript_id, details),
            details=details,
        )
        logger.info(
            "Manuscript %d: %d matches, %d new appearances, %d cross-book",
            manuscript_id,
            summary.total_matches,
            summary.new_appearances,
            len(summary.cross_book_entities),
        )
        return summary

    def detect_full_project(self, project_id: int) -> DetectionSummary:
        """Run detection over every manuscript of a project, in id order."""
        summary = DetectionSummary()
        merged: dict[int, CrossBookEntity] = {}

        for manuscript in self.store.list_manuscripts(project_id):
            result = self.detect(project_id, manuscript.id)
            summary.total_matches += result.total_matches
            summary.new_appearances += result.new_appearances
            summary.details.extend(result.details)

            for entry in result.cross_book_entities:
                seen = merged.get(entry.entity_id)
                if seen is None:
                    merged[entry.entity_id] = entry
                    continue
                for book in entry.new_books:
                    if book not in seen.new_books:
                        seen.new_books.append(book)

        summary.cross_book_entities = list(merged.values())
        return summary

    @staticmethod
    def _first_match(body: str, entry: SearchEntry) -> tuple[int, str] | None:
        """Try terms longest first; the first whole-word hit wins."""
        for term in entry.terms:
            idx = find_whole_word(body, term)
            if idx != -1:
                return idx, term
        return None

    def _cross_book_summary(
        self,
        project_id: int,
        manuscript_id: int,
        details: list[DetectionResult],
    ) -> list[CrossBookEntity]:
        if not details:
            return []

        titles = self.store.manuscript_titles(project_id)
        first_detail: dict[int, DetectionResult] = {}
        for detail in details:
            first_detail.setdefault(detail.entity_id, detail)

        report: list[CrossBookEntity] = []
        for entity_id, detail in first_detail.items():
            others = [
                ms_id for ms_id in self.store.entity_manuscript_ids(entity_id)
                if ms_id != manuscript_id
            ]
            # Entities seen for the first time anywhere have nothing to cross-reference
            if not others:
                continue

            report.append(
                CrossBookEntity(
                    entity_id=entity_id,
                    entity_name=detail.entity_name,
                    entity_type=detail.entity_type,
                    existing_books=[_book_title(titles, ms_id) for ms_id in others],
                    new_books=[_book_title(titles, manuscript_id)],
                )
            )
        return report
