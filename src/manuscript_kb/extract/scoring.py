"""Candidate scoring policy.

Every threshold here is an empirically tuned calibration point. They are kept
as named constants so they can be audited and retuned against real
manuscripts without touching the scanning loop.
"""

from typing import Literal

from .gazetteer import is_acronym

Confidence = Literal["high", "medium", "low"]

# Component caps (each component contributes at most 25)
FREQUENCY_CAP = 25
FREQUENCY_PER_HIT = 3
SPREAD_CAP = 25
NON_START_WEIGHT = 25

# Shape component
SHAPE_ACRONYM = 15
SHAPE_MULTI_WORD = 20
SHAPE_SINGLE_WORD = 15
SHAPE_SHORT_WORD = 8

# Minimum score to survive
MIN_SCORE_SHORT = 35  # text of 2 characters or fewer ("Wu")
MIN_SCORE_MULTI_WORD = 25
MIN_SCORE_DEFAULT = 30

# Confidence bands
HIGH_CONFIDENCE = 60
MEDIUM_CONFIDENCE = 35

# Occurrence filters
MIN_OCCURRENCES = 2
ALWAYS_SENTENCE_START_RATIO = 1.0
ALWAYS_SENTENCE_START_MAX_HITS = 6
MOSTLY_SENTENCE_START_RATIO = 0.9
MOSTLY_SENTENCE_START_MAX_HITS = 4

MAX_CANDIDATES = 200


def shape_score(text: str) -> int:
    if is_acronym(text):
        return SHAPE_ACRONYM
    if len(text.split()) >= 2:
        return SHAPE_MULTI_WORD
    if len(text) >= 3:
        return SHAPE_SINGLE_WORD
    return SHAPE_SHORT_WORD


def score_candidate(
    text: str,
    occurrences: int,
    chapter_count: int,
    total_chapters: int,
    sentence_start_ratio: float,
) -> float:
    """Score a candidate from 0 to 100.

    Args:
        text: Candidate text
        occurrences: Total hits across the scanned chapters
        chapter_count: Number of distinct chapters containing the candidate
        total_chapters: Number of chapters scanned
        sentence_start_ratio: Share of hits that sit at a sentence start

    Returns:
        Sum of the frequency, spread, non-sentence-start and shape components
    """
    frequency = min(FREQUENCY_CAP, occurrences * FREQUENCY_PER_HIT)
    spread = min(SPREAD_CAP, chapter_count / total_chapters * SPREAD_CAP) if total_chapters else 0.0
    non_start = (1 - sentence_start_ratio) * NON_START_WEIGHT
    return frequency + spread + non_start + shape_score(text)


def minimum_score(text: str) -> int:
    """Minimum score a candidate needs to be kept."""
    if len(text) <= 2:
        return MIN_SCORE_SHORT
    if len(text.split()) >= 2:
        return MIN_SCORE_MULTI_WORD
    return MIN_SCORE_DEFAULT


def confidence_band(score: float) -> Confidence:
    if score >= HIGH_CONFIDENCE:
        return "high"
    if score >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


def is_sentence_initial_noise(word_count: int, occurrences: int, sentence_start_ratio: float) -> bool:
    """Detect words that almost only appear capitalized because they open a sentence."""
    if (
        word_count == 1
        and sentence_start_ratio >= ALWAYS_SENTENCE_START_RATIO
        and occurrences < ALWAYS_SENTENCE_START_MAX_HITS
    ):
        return True
    return sentence_start_ratio > MOSTLY_SENTENCE_START_RATIO and occurrences < MOSTLY_SENTENCE_START_MAX_HITS
