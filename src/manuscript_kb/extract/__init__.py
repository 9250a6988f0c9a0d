"""Candidate entity extraction from raw prose."""

from .candidates import (
    Candidate,
    CandidateExtractor,
    ExtractionResult,
    deduplicate_candidates,
    extract_from_chapters,
)
from .classifier import classify_type, get_context_snippets
from .gazetteer import GazetteerHit, is_noise, lookup
from .llm_classifier import LLMClassification, LLMEntityClassifier
from .pipeline import (
    ClassifiedCandidate,
    PipelineResult,
    PipelineStats,
    refine_candidates,
    to_extraction_result,
)

__all__ = [
    "Candidate",
    "CandidateExtractor",
    "ClassifiedCandidate",
    "ExtractionResult",
    "GazetteerHit",
    "LLMClassification",
    "LLMEntityClassifier",
    "PipelineResult",
    "PipelineStats",
    "classify_type",
    "deduplicate_candidates",
    "extract_from_chapters",
    "get_context_snippets",
    "is_noise",
    "lookup",
    "refine_candidates",
    "to_extraction_result",
]
