"""Load manuscripts from text files."""

from pathlib import Path

SUPPORTED_SUFFIXES = (".txt", ".md", ".markdown")


def load_text(path: Path) -> str:
    """
    Load a manuscript from file and return plain text.

    Supports:
    - .txt files
    - .md / .markdown files (kept as markdown for heading-based splitting)

    Tries UTF-8 (dropping any byte-order mark) and Windows-1252, then falls
    back to Latin-1, which decodes any byte sequence.
    """
    suffix = path.suffix.lower()

    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(f"Unsupported file format: {suffix}")

    # utf-8-sig also reads plain UTF-8
    for encoding in ("utf-8-sig", "cp1252"):
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue

    return path.read_text(encoding="latin-1")
