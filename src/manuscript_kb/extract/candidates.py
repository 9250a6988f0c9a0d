"""Candidate entity extraction.

Discovers capitalized names and acronyms in raw prose with no prior
knowledge, scores and classifies them, and folds single words into the
multi-word names that contain them.
"""

import logging
from dataclasses import asdict, dataclass, field

from ..config import get_settings
from ..models.entities import EntityType
from ..store.base import KnowledgeStore
from .classifier import classify_type, get_context_snippets
from .gazetteer import is_acronym, is_noise, is_street_address
from .scanner import RawCandidate, scan_chapters
from .scoring import (
    MAX_CANDIDATES,
    MIN_OCCURRENCES,
    Confidence,
    confidence_band,
    is_sentence_initial_noise,
    minimum_score,
    score_candidate,
)

logger = logging.getLogger(__name__)

SAMPLE_CONTEXTS = 3


@dataclass
class Candidate:
    """An unconfirmed entity name discovered in prose."""

    text: str
    suggested_type: EntityType
    confidence: Confidence
    score: float
    occurrences: int
    chapter_spread: int
    sample_contexts: list[str] = field(default_factory=list)
    related_candidates: list[str] = field(default_factory=list)

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    def to_dict(self) -> dict:
        data = asdict(self)
        data["suggested_type"] = self.suggested_type.value
        return data


@dataclass
class ExtractionResult:
    """Extraction output plus the names already catalogued in the project."""

    candidates: list[Candidate] = field(default_factory=list)
    existing_entities: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "candidates": [c.to_dict() for c in self.candidates],
            "existing_entities": list(self.existing_entities),
        }


def _keep(raw: RawCandidate, existing_lower: set[str]) -> bool:
    text = raw.text
    if is_noise(text) or is_street_address(text):
        return False
    if text.lower() in existing_lower:
        return False
    # Acronyms are distinctive enough with a single hit
    if raw.total_count < MIN_OCCURRENCES and not is_acronym(text):
        return False
    return not is_sentence_initial_noise(raw.word_count, raw.total_count, raw.sentence_start_ratio)


def deduplicate_candidates(candidates: list[Candidate]) -> list[Candidate]:
    """Fold single words into the multi-word candidates that contain them.

    Multi-word candidates are always kept and list their non-noise words as
    related candidates. A single word claimed by a phrase is dropped, and its
    occurrence count and chapter spread are merged into the longest phrase
    containing it (max, never summed). Unclaimed single words are kept.
    """
    ordered = sorted(candidates, key=lambda c: c.word_count, reverse=True)

    kept: dict[str, Candidate] = {}
    consumed: set[str] = set()

    for cand in ordered:
        if cand.word_count > 1:
            kept[cand.text] = cand
            for word in cand.text.split():
                if not is_noise(word):
                    consumed.add(word)
                    if word not in cand.related_candidates:
                        cand.related_candidates.append(word)

    phrases = list(kept.values())
    for cand in ordered:
        if cand.word_count != 1:
            continue
        if cand.text not in consumed:
            kept[cand.text] = cand
            continue

        containing = [p for p in phrases if cand.text in p.text.split()]
        if not containing:
            continue
        longer = max(containing, key=lambda p: (p.word_count, p.score))
        longer.occurrences = max(longer.occurrences, cand.occurrences)
        longer.chapter_spread = max(longer.chapter_spread, cand.chapter_spread)
        if cand.text not in longer.related_candidates:
            longer.related_candidates.append(cand.text)

    return list(kept.values())


def extract_from_chapters(
    bodies: list[str],
    existing_names: list[str] | None = None,
    limit: int = MAX_CANDIDATES,
) -> ExtractionResult:
    """Extract candidates from in-memory chapter bodies.

    Args:
        bodies: Chapter texts in narrative order
        existing_names: Names already catalogued (excluded, case-insensitive)
        limit: Maximum number of candidates returned

    Returns:
        ExtractionResult sorted by descending score
    """
    existing = list(existing_names or [])
    if not bodies:
        return ExtractionResult(candidates=[], existing_entities=existing)

    existing_lower = {name.lower() for name in existing}
    raw_candidates = scan_chapters(bodies)
    full_text = "\n\n".join(body or "" for body in bodies)
    total_chapters = len(bodies)

    scored: list[Candidate] = []
    for raw in raw_candidates.values():
        if not _keep(raw, existing_lower):
            continue

        score = score_candidate(
            raw.text,
            raw.total_count,
            len(raw.chapters),
            total_chapters,
            raw.sentence_start_ratio,
        )
        if score < minimum_score(raw.text):
            continue

        contexts = get_context_snippets(full_text, raw.text)
        scored.append(
            Candidate(
                text=raw.text,
                suggested_type=classify_type(raw.text, contexts),
                confidence=confidence_band(score),
                score=score,
                occurrences=raw.total_count,
                chapter_spread=len(raw.chapters),
                sample_contexts=contexts[:SAMPLE_CONTEXTS],
            )
        )

    logger.debug(
        "Scanned %d chapters: %d raw candidates, %d scored",
        total_chapters,
        len(raw_candidates),
        len(scored),
    )

    deduped = deduplicate_candidates(scored)
    deduped.sort(key=lambda c: c.score, reverse=True)

    return ExtractionResult(candidates=deduped[:limit], existing_entities=existing)


class CandidateExtractor:
    """Extract entity candidates from a project's stored chapters."""

    def __init__(self, store: KnowledgeStore):
        self.store = store
        self.settings = get_settings()

    def extract(
        self,
        project_id: int,
        manuscript_id: int | None = None,
        limit: int | None = None,
    ) -> ExtractionResult:
        """Extract candidates project-wide, or from a single manuscript.

        Args:
            project_id: Project whose catalogued names are excluded
            manuscript_id: Restrict the scan to one manuscript
            limit: Cap on candidates (defaults to the max_candidates setting)

        Returns:
            ExtractionResult; empty when there are no chapters
        """
        if manuscript_id is not None:
            chapters = self.store.list_chapters(manuscript_id)
        else:
            chapters = self.store.list_project_chapters(project_id)

        if not chapters:
            return ExtractionResult()

        result = extract_from_chapters(
            [chapter.body for chapter in chapters],
            self.store.entity_names(project_id),
            limit=limit or self.settings.max_candidates,
        )
        logger.info(
            "Extracted %d candidates from %d chapters (project %d)",
            len(result.candidates),
            len(chapters),
            project_id,
        )
        return result
