"""Search terms for known entities, and whole-word matching."""

from dataclasses import dataclass, field

from ..models.entities import Entity, EntityType

# Metadata keys that may hold alternative names
ALIAS_KEYS = ("aliases", "alias", "nicknames", "nickname", "aka", "also_known_as")

MIN_ALIAS_LENGTH = 2
MIN_FIRST_NAME_LENGTH = 3

BOUNDARY_CHARS = frozenset(".,;:!?'\"()[]{}-—–/\\<>‘’“”")


@dataclass
class SearchEntry:
    """An entity and its lowercase search terms, longest first."""

    entity: Entity
    terms: list[str] = field(default_factory=list)


def parse_aliases(metadata: dict) -> list[str]:
    """Collect lowercase aliases from free-form entity metadata.

    Comma-separated strings and lists of strings are accepted; any other
    shape is ignored.
    """
    aliases: list[str] = []
    for key in ALIAS_KEYS:
        value = metadata.get(key)
        if isinstance(value, str):
            candidates = value.split(",")
        elif isinstance(value, list):
            candidates = [item for item in value if isinstance(item, str)]
        else:
            continue

        for alias in candidates:
            alias = alias.strip().lower()
            if len(alias) >= MIN_ALIAS_LENGTH:
                aliases.append(alias)
    return aliases


def build_search_terms(entities: list[Entity]) -> list[SearchEntry]:
    """Build a SearchEntry per entity from its name, aliases and first name."""
    entries: list[SearchEntry] = []
    for entity in entities:
        terms = [entity.name.lower()]
        terms.extend(parse_aliases(entity.metadata or {}))

        # "Katherine Shaw" is also found as "katherine"
        if entity.type == EntityType.CHARACTER:
            parts = entity.name.split()
            if len(parts) > 1 and len(parts[0]) >= MIN_FIRST_NAME_LENGTH:
                terms.append(parts[0].lower())

        unique = [term for term in dict.fromkeys(terms) if term]
        unique.sort(key=len, reverse=True)
        entries.append(SearchEntry(entity=entity, terms=unique))
    return entries


def is_word_boundary(char: str) -> bool:
    return char.isspace() or char in BOUNDARY_CHARS


def find_whole_word(text: str, term: str) -> int:
    """Return the offset of the first whole-word occurrence of ``term``, or -1.

    ``text`` and ``term`` are expected to be lowercased already. The string
    edges count as boundaries.
    """
    if not term:
        return -1

    start = 0
    while True:
        idx = text.find(term, start)
        if idx == -1:
            return -1

        end = idx + len(term)
        before_ok = idx == 0 or is_word_boundary(text[idx - 1])
        after_ok = end >= len(text) or is_word_boundary(text[end])
        if before_ok and after_ok:
            return idx

        start = idx + 1
