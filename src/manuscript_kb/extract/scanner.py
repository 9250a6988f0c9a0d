"""Capitalized-phrase and acronym scanning over raw chapter text.

The scanner only records occurrences; filtering, scoring and classification
happen later in candidates.py.
"""

import re
from dataclasses import dataclass, field

from .gazetteer import is_acronym_skip, is_caps_noise, is_noise

SENTENCE_END = re.compile(r"[.!?]\s+")
PARAGRAPH_BREAK = re.compile(r"\n\n\s*")

# 1-4 capitalized words, optionally possessive, joined by spaces or a single
# line break. A blank line ends the phrase.
_WORD = r"[A-Z][a-z]+(?:['’]s)?"
_JOIN = r"(?:[ \t]*\n[ \t]*|[ \t]+)"
PHRASE_PATTERN = re.compile(rf"\b({_WORD}(?:{_JOIN}{_WORD}){{0,3}})\b")
WORD_PATTERN = re.compile(_WORD)
POSSESSIVE = re.compile(r"['’]s$")

ACRONYM_PATTERN = re.compile(r"\b([A-Z]{2,6})\b")

OPENING_QUOTES = ('"', "“")

# How far (in characters) a match may sit after a sentence boundary
SENTENCE_START_WINDOW = 3
QUOTED_START_WINDOW = 4


@dataclass
class RawCandidate:
    """Aggregated occurrences of one distinct candidate text."""

    text: str
    total_count: int = 0
    sentence_start_count: int = 0
    chapters: set[int] = field(default_factory=set)

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    @property
    def sentence_start_ratio(self) -> float:
        if not self.total_count:
            return 0.0
        return self.sentence_start_count / self.total_count

    def add(self, chapter_index: int, at_sentence_start: bool) -> None:
        self.total_count += 1
        self.chapters.add(chapter_index)
        if at_sentence_start:
            self.sentence_start_count += 1


def find_sentence_starts(text: str) -> set[int]:
    """Return offsets where a sentence begins.

    Offset 0 always counts, as does the first character after sentence-ending
    punctuation plus whitespace, or after a blank-line paragraph break.
    """
    starts = {0}
    for match in SENTENCE_END.finditer(text):
        starts.add(match.end())
    for match in PARAGRAPH_BREAK.finditer(text):
        starts.add(match.end())
    return starts


def is_sentence_start(pos: int, text: str, starts: set[int]) -> bool:
    """Check whether a match at ``pos`` sits at the start of a sentence.

    True when a boundary lies at most 3 characters before ``pos``, or when the
    match directly follows an opening quote that itself follows a boundary.
    """
    for i in range(pos, max(0, pos - SENTENCE_START_WINDOW) - 1, -1):
        if i in starts:
            return True

    if pos > 0 and text[pos - 1] in OPENING_QUOTES:
        for i in range(pos - 1, max(0, pos - QUOTED_START_WINDOW) - 1, -1):
            if i in starts:
                return True

    return False


def _record(
    candidates: dict[str, RawCandidate],
    text: str,
    chapter_index: int,
    at_sentence_start: bool,
) -> None:
    raw = candidates.get(text)
    if raw is None:
        raw = candidates[text] = RawCandidate(text=text)
    raw.add(chapter_index, at_sentence_start)


def _phrase_words(phrase: str, base: int) -> list[tuple[str, int]]:
    """Split a matched phrase into (word, absolute offset) pairs, possessives stripped."""
    return [
        (POSSESSIVE.sub("", m.group(0)), base + m.start())
        for m in WORD_PATTERN.finditer(phrase)
    ]


def scan_text(text: str, chapter_index: int, candidates: dict[str, RawCandidate]) -> None:
    """Scan one chapter body, adding occurrences into ``candidates``.

    Args:
        text: Chapter body
        chapter_index: Position of the chapter within the scanned set
        candidates: Aggregation map, keyed by candidate text
    """
    starts = find_sentence_starts(text)

    for match in PHRASE_PATTERN.finditer(text):
        words = _phrase_words(match.group(1), match.start(1))

        # "But Knox" -> "Knox"
        while len(words) > 1 and is_noise(words[0][0]):
            words.pop(0)

        phrase = " ".join(word for word, _ in words)
        if len(phrase) < 2 or is_noise(phrase):
            continue

        offset = words[0][1]
        _record(candidates, phrase, chapter_index, is_sentence_start(offset, text, starts))

        if len(words) > 1:
            for word, word_offset in words:
                if len(word) >= 2 and not is_noise(word):
                    _record(
                        candidates,
                        word,
                        chapter_index,
                        is_sentence_start(word_offset, text, starts),
                    )

    for match in ACRONYM_PATTERN.finditer(text):
        acronym = match.group(1)
        if is_acronym_skip(acronym) or is_caps_noise(acronym):
            continue
        offset = match.start(1)
        _record(candidates, acronym, chapter_index, is_sentence_start(offset, text, starts))


def scan_chapters(bodies: list[str]) -> dict[str, RawCandidate]:
    """Scan every chapter body and return the aggregated raw candidates."""
    candidates: dict[str, RawCandidate] = {}
    for index, body in enumerate(bodies):
        scan_text(body or "", index, candidates)
    return candidates
