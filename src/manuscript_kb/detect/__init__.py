"""Known-entity detection and cross-book presence."""

from .detector import CrossBookEntity, DetectionResult, DetectionSummary, EntityDetector
from .presence import EntityPresence, cross_book_presence
from .terms import SearchEntry, build_search_terms, find_whole_word, parse_aliases

__all__ = [
    "CrossBookEntity",
    "DetectionResult",
    "DetectionSummary",
    "EntityDetector",
    "EntityPresence",
    "SearchEntry",
    "build_search_terms",
    "cross_book_presence",
    "find_whole_word",
    "parse_aliases",
]
