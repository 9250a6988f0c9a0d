"""Manuscript ingestion."""

from .loader import load_text
from .splitter import ChapterRecord, split_into_chapters, split_manuscript, split_markdown

__all__ = ["ChapterRecord", "load_text", "split_into_chapters", "split_manuscript", "split_markdown"]
