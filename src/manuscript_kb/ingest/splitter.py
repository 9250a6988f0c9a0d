"""Split manuscript text into ordered chapters."""

import re
from dataclasses import asdict, dataclass

# Common chapter patterns
CHAPTER_PATTERNS = [
    r"^(Chapter[ \t]+[IVXLC\d]+[:\.]?[ \t]*.*)$",  # Chapter I, Chapter 1, etc.
    r"^(CHAPTER[ \t]+[IVXLC\d]+[:\.]?[ \t]*.*)$",  # CHAPTER I
    r"^(\d+\.[ \t]+.+)$",  # 1. Title
    r"^(Part[ \t]+[IVXLC\d]+[:\.]?[ \t]*.*)$",  # Part I
    r"^(Prologue|Epilogue)[ \t]*$",  # Marker lines on their own
]

# Leading text shorter than this before the first marker is dropped
MIN_PREAMBLE_LENGTH = 100


@dataclass
class ChapterRecord:
    """A chapter ready to be stored."""

    title: str
    order_index: int
    body: str

    def to_dict(self) -> dict:
        return asdict(self)


def _number(chapters: list[tuple[str, str]]) -> list[ChapterRecord]:
    return [
        ChapterRecord(title=title, order_index=i, body=body)
        for i, (title, body) in enumerate(chapters)
    ]


def split_into_chapters(text: str) -> list[ChapterRecord]:
    """
    Split plain text into chapters on "Chapter N" style marker lines.

    Text without markers becomes a single chapter.
    """
    combined_pattern = "|".join(f"({p})" for p in CHAPTER_PATTERNS)
    splits = list(re.finditer(combined_pattern, text, re.MULTILINE | re.IGNORECASE))

    if not splits:
        body = text.strip()
        return _number([("Chapter 1", body)]) if body else []

    chapters: list[tuple[str, str]] = []

    # Substantial content before the first marker becomes a prologue
    preamble = text[: splits[0].start()].strip()
    if len(preamble) > MIN_PREAMBLE_LENGTH:
        chapters.append(("Prologue", preamble))

    for i, match in enumerate(splits):
        title = match.group(0).strip()
        start = match.end()
        end = splits[i + 1].start() if i + 1 < len(splits) else len(text)

        chapter_text = text[start:end].strip()
        if chapter_text:  # Skip empty chapters
            chapters.append((title, chapter_text))

    return _number(chapters)


def split_markdown(text: str, heading_depth: int = 2) -> list[ChapterRecord]:
    """
    Split markdown into chapters on headings of the given depth ("## " by default).

    Content before the first heading becomes an "Untitled" chapter. Text
    with no such headings is returned as a single chapter.
    """
    heading = re.compile(rf"^{'#' * heading_depth}[ \t]+(.+?)[ \t#]*$", re.MULTILINE)
    matches = list(heading.finditer(text))

    if not matches:
        body = text.strip()
        return _number([("Untitled", body)]) if body else []

    chapters: list[tuple[str, str]] = []

    preamble = text[: matches[0].start()].strip()
    if preamble:
        chapters.append(("Untitled", preamble))

    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        chapters.append((match.group(1).strip(), text[match.end() : end].strip()))

    return _number(chapters)


def split_manuscript(text: str, suffix: str = ".txt") -> list[ChapterRecord]:
    """Split text using the strategy for its file type."""
    if suffix.lower() in (".md", ".markdown"):
        return split_markdown(text)
    return split_into_chapters(text)
