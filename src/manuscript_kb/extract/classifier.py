"""Context-window type classification for extraction candidates."""

from ..models.entities import EntityType
from .gazetteer import (
    CHARACTER_SIGNALS,
    CHARACTER_TITLES,
    LOCATION_PREPOSITIONS,
    ORG_CONTEXT_WORDS,
    is_acronym,
    lookup,
    suffix_type,
)

CONTEXT_RADIUS = 40
MAX_CONTEXTS = 10
ELLIPSIS = "…"

# Context weights
SIGNAL_WEIGHT = 3
TITLE_WEIGHT = 5
PREPOSITION_WEIGHT = 3
ARTICLE_WEIGHT = 2
ORG_WORD_WEIGHT = 4
# Counters false locative signals such as "to Lisa Ramsey"
MULTI_WORD_NAME_BONUS = 8


def get_context_snippets(full_text: str, candidate: str, max_snippets: int = MAX_CONTEXTS) -> list[str]:
    """Return up to ``max_snippets`` windows of text around ``candidate``.

    Matching is a case-insensitive substring search. Each window spans 40
    characters either side, with newlines flattened and an ellipsis marking
    truncated edges.
    """
    snippets: list[str] = []
    lower = full_text.lower()
    target = candidate.lower()
    if not target:
        return snippets

    idx = 0
    while len(snippets) < max_snippets:
        idx = lower.find(target, idx)
        if idx == -1:
            break

        start = max(0, idx - CONTEXT_RADIUS)
        end = min(len(full_text), idx + len(target) + CONTEXT_RADIUS)
        snippet = full_text[start:end].replace("\n", " ")
        if start > 0:
            snippet = ELLIPSIS + snippet
        if end < len(full_text):
            snippet = snippet + ELLIPSIS
        snippets.append(snippet)

        idx += len(target)

    return snippets


def context_scores(text: str, contexts: list[str]) -> tuple[int, int, int]:
    """Score (character, location, organization) evidence across context windows."""
    character = location = organization = 0
    name = text.lower()

    for ctx in contexts:
        lower = ctx.lower()

        # "Liu said", "said Liu"
        for signal in CHARACTER_SIGNALS:
            if f"{name} {signal}" in lower:
                character += SIGNAL_WEIGHT
            if f"{signal} {name}" in lower:
                character += SIGNAL_WEIGHT

        # "Agent Ramsey", "Dr. Wu"
        for title in CHARACTER_TITLES:
            if f"{title} {name}" in lower:
                character += TITLE_WEIGHT
            if f"{title}. {name}" in lower:
                character += TITLE_WEIGHT

        # "in Shanghai", "to Detroit"
        for prep in LOCATION_PREPOSITIONS:
            if f"{prep} {name}" in lower:
                location += PREPOSITION_WEIGHT

        # "the MSS", "Zenith agency"
        if f"the {name}" in lower:
            organization += ARTICLE_WEIGHT
        for word in ORG_CONTEXT_WORDS:
            if f"{name} {word}" in lower:
                organization += ORG_WORD_WEIGHT

    return character, location, organization


def classify_type(text: str, contexts: list[str]) -> EntityType:
    """Suggest an entity type for a candidate.

    Acronyms are organizations and gazetteer hits keep their listed type.
    Everything else is decided by weighted context evidence, defaulting to
    character.
    """
    if is_acronym(text):
        return EntityType.ORGANIZATION

    hit = lookup(text)
    if hit is not None:
        return hit.type

    character, location, organization = context_scores(text, contexts)

    word_count = len(text.split())
    if 2 <= word_count <= 3 and suffix_type(text) is None:
        character += MULTI_WORD_NAME_BONUS

    best = max(character, location, organization)
    if best == 0:
        return EntityType.CHARACTER
    if location == best and location > character:
        return EntityType.LOCATION
    if organization == best and organization > character:
        return EntityType.ORGANIZATION
    return EntityType.CHARACTER


def classification_source(text: str, contexts: list[str]) -> str:
    """Name the rule classify_type decides by: shape, gazetteer, context or default."""
    if is_acronym(text):
        return "shape"
    if lookup(text) is not None:
        return "gazetteer"
    if any(context_scores(text, contexts)):
        return "context"
    if 2 <= len(text.split()) <= 3 and suffix_type(text) is None:
        return "shape"
    return "default"
