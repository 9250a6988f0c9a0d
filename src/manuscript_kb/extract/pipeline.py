"""Extraction refinement pipeline.

Layers noise re-filtering, gazetteer overrides, a review queue and the
optional LLM classifier over plain extraction output.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Literal, Optional

from ..models.entities import EntityType
from .candidates import Candidate, ExtractionResult
from .classifier import classification_source
from .gazetteer import is_acronym, is_caps_noise, is_noise, is_street_address, lookup
from .llm_classifier import LLMClassification, LLMEntityClassifier
from .scoring import confidence_band

logger = logging.getLogger(__name__)

ClassifiedBy = Literal["gazetteer", "context", "shape", "default", "llm"]

BAND_CONFIDENCE = {"high": 80, "medium": 50, "low": 30}
DEFAULT_REVIEW_THRESHOLD = 50


@dataclass
class ClassifiedCandidate:
    """A candidate with a numeric confidence and its classification source."""

    name: str
    type: EntityType
    confidence: int
    score: float
    frequency: int
    chapter_spread: int
    total_chapters: int
    contexts: list[str] = field(default_factory=list)
    classified_by: ClassifiedBy = "context"
    filtered: bool = False
    filter_reason: str | None = None
    related_names: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["type"] = self.type.value
        return data

    def to_candidate(self) -> Candidate:
        return Candidate(
            text=self.name,
            suggested_type=self.type,
            confidence=confidence_band(self.confidence),
            score=self.score,
            occurrences=self.frequency,
            chapter_spread=self.chapter_spread,
            sample_contexts=list(self.contexts),
            related_candidates=list(self.related_names),
        )


@dataclass
class PipelineStats:
    total_candidates: int = 0
    filtered_as_noise: int = 0
    auto_classified: int = 0
    needs_review: int = 0
    llm_enhanced: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class PipelineResult:
    entities: list[ClassifiedCandidate] = field(default_factory=list)
    filtered: list[ClassifiedCandidate] = field(default_factory=list)
    needs_review: list[ClassifiedCandidate] = field(default_factory=list)
    stats: PipelineStats = field(default_factory=PipelineStats)

    def to_dict(self) -> dict:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "filtered": [e.to_dict() for e in self.filtered],
            "needs_review": [e.to_dict() for e in self.needs_review],
            "stats": self.stats.to_dict(),
        }


def noise_reason(text: str) -> str | None:
    """Return why a candidate is noise, or None if it is not."""
    if is_noise(text):
        return "noise_word"
    if is_street_address(text):
        return "street_address"
    if is_acronym(text) and is_caps_noise(text):
        return "caps_noise"
    return None


def classify_candidate(cand: Candidate, total_chapters: int) -> ClassifiedCandidate:
    """Convert a candidate to numeric confidence, letting a stronger gazetteer hit win."""
    entity_type = cand.suggested_type
    confidence = BAND_CONFIDENCE[cand.confidence]
    classified_by: ClassifiedBy = classification_source(cand.text, cand.sample_contexts)

    hit = lookup(cand.text)
    if hit is not None and hit.confidence > confidence:
        entity_type = hit.type
        confidence = hit.confidence
        classified_by = "gazetteer"

    return ClassifiedCandidate(
        name=cand.text,
        type=entity_type,
        confidence=confidence,
        score=cand.score,
        frequency=cand.occurrences,
        chapter_spread=cand.chapter_spread,
        total_chapters=total_chapters,
        contexts=list(cand.sample_contexts),
        classified_by=classified_by,
        related_names=list(cand.related_candidates),
    )


def merge_llm_results(
    candidates: list[ClassifiedCandidate],
    results: list[LLMClassification],
) -> list[ClassifiedCandidate]:
    """Apply LLM verdicts: noise is filtered, anything else overrides type and confidence."""
    by_name = {result.name: result for result in results}
    for cand in candidates:
        verdict = by_name.get(cand.name)
        if verdict is None:
            continue
        if verdict.is_noise:
            cand.filtered = True
            cand.filter_reason = f"llm_noise: {verdict.reasoning}"
        else:
            cand.type = verdict.type
            cand.confidence = verdict.confidence
            cand.classified_by = "llm"
    return candidates


def _valid(candidates: list[ClassifiedCandidate]) -> list[ClassifiedCandidate]:
    return [c for c in candidates if not c.filtered]


def _review(candidates: list[ClassifiedCandidate], threshold: int) -> list[ClassifiedCandidate]:
    return [c for c in candidates if not c.filtered and c.confidence < threshold]


def refine_candidates(
    result: ExtractionResult,
    total_chapters: int,
    *,
    use_llm: bool = False,
    classifier: Optional[LLMEntityClassifier] = None,
    review_threshold: int = DEFAULT_REVIEW_THRESHOLD,
    book_title: str = "Unknown",
    genre: str = "Fiction",
) -> PipelineResult:
    """Refine extraction output into validated, filtered and review lists.

    Args:
        result: Output of candidate extraction
        total_chapters: Number of chapters the candidates came from
        use_llm: Send the review queue to the LLM classifier
        classifier: Classifier to use (created on demand when use_llm is set)
        review_threshold: Confidence below which a candidate needs review
        book_title: Title given to the LLM for context
        genre: Genre given to the LLM for context

    Returns:
        PipelineResult with stats
    """
    classified: list[ClassifiedCandidate] = []
    filtered: list[ClassifiedCandidate] = []

    for cand in result.candidates:
        item = classify_candidate(cand, total_chapters)
        reason = noise_reason(cand.text)
        if reason:
            item.filtered = True
            item.filter_reason = reason
            filtered.append(item)
        else:
            classified.append(item)

    review = _review(classified, review_threshold)
    llm_enhanced = 0

    if use_llm and review:
        try:
            classifier = classifier or LLMEntityClassifier()
            verdicts = classifier.classify(review, book_title=book_title, genre=genre)
        except Exception as e:
            logger.warning("LLM classification failed: %s", e)
            verdicts = []
        if verdicts:
            merge_llm_results(classified, verdicts)
            llm_enhanced = sum(1 for v in verdicts if not v.is_noise)
        else:
            logger.warning("LLM classification unavailable, using base results")

    filtered.extend(c for c in classified if c.filtered)
    entities = _valid(classified)
    needs_review = _review(classified, review_threshold)

    stats = PipelineStats(
        total_candidates=len(result.candidates),
        filtered_as_noise=len(filtered),
        auto_classified=len(entities) - len(needs_review),
        needs_review=len(needs_review),
        llm_enhanced=llm_enhanced,
    )
    logger.info(
        "Refined %d candidates: %d kept, %d filtered, %d need review",
        stats.total_candidates,
        len(entities),
        stats.filtered_as_noise,
        stats.needs_review,
    )
    return PipelineResult(entities=entities, filtered=filtered, needs_review=needs_review, stats=stats)


def to_extraction_result(pipeline_result: PipelineResult, existing: list[str]) -> ExtractionResult:
    """Convert refined entities back to the plain candidate shape."""
    return ExtractionResult(
        candidates=[c.to_candidate() for c in pipeline_result.entities],
        existing_entities=list(existing),
    )
