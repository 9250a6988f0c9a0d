"""Tests for known-entity detection."""

import pytest

from manuscript_kb.detect import EntityDetector, build_search_terms, find_whole_word, parse_aliases
from manuscript_kb.models.entities import Entity

BLAKE_TEXT = "Commander Blake infiltrated Blacksite Omega under orders from the Shadow Council."


def make_entity(name: str, entity_type: str = "character", **metadata) -> Entity:
    return Entity(id=1, project_id=1, type=entity_type, name=name, metadata=metadata)


class TestAliases:
    """Test alias parsing from free-form metadata."""

    def test_comma_separated_string(self):
        """Comma-separated strings are split, lowercased and short names dropped."""
        assert parse_aliases({"aka": "Kate, K ,  Katie"}) == ["kate", "katie"]

    def test_list(self):
        """Lists keep only their string items."""
        assert parse_aliases({"aliases": ["Kate", 7, None, "Shaw"]}) == ["kate", "shaw"]

    def test_all_keys(self):
        """Every alias key is read, in a fixed order."""
        metadata = {
            "aliases": "a1",
            "alias": "a2",
            "nicknames": "a3",
            "nickname": "a4",
            "aka": "a5",
            "also_known_as": "a6",
        }
        assert parse_aliases(metadata) == ["a1", "a2", "a3", "a4", "a5", "a6"]

    def test_malformed_ignored(self):
        """Alias values that are neither strings nor lists are ignored."""
        assert parse_aliases({"aliases": {"name": "Kate"}, "nickname": 42}) == []


class TestSearchTerms:
    """Test search term construction."""

    def test_longest_first_and_deduplicated(self):
        """Terms are unique and ordered longest first."""
        entity = make_entity("Katherine Shaw", aliases=["Kate", "Katherine Shaw"])
        (entry,) = build_search_terms([entity])
        assert entry.terms == ["katherine shaw", "katherine", "kate"]

    def test_first_name_only_for_characters(self):
        """Only characters get a first-name term."""
        (entry,) = build_search_terms([make_entity("Shadow Council", "organization")])
        assert entry.terms == ["shadow council"]

    def test_short_first_name_skipped(self):
        """First names under three letters are not searched."""
        (entry,) = build_search_terms([make_entity("Al Brand")])
        assert entry.terms == ["al brand"]


class TestWordBoundaries:
    """Test whole-word matching."""

    def test_rejects_mid_token(self):
        """A term inside a longer word does not match."""
        assert find_whole_word("ramseyson arrived", "ramsey") == -1
        assert find_whole_word("the oramsey file", "ramsey") == -1

    def test_accepts_edges_and_punctuation(self):
        """Text edges, brackets, quotes and dashes count as boundaries."""
        assert find_whole_word("ramsey", "ramsey") == 0
        assert find_whole_word("(ramsey)", "ramsey") == 1
        assert find_whole_word("“ramsey”", "ramsey") == 1
        assert find_whole_word("it was—ramsey.", "ramsey") == 7

    def test_skips_to_later_valid_hit(self):
        """A rejected hit does not hide a later whole-word hit."""
        text = "ramseyson met ramsey"
        assert find_whole_word(text, "ramsey") == text.rindex("ramsey")

    @pytest.mark.parametrize("neighbour", ["a", "7", "_"])
    def test_alphanumeric_neighbours_rejected(self, neighbour):
        """Letters, digits and underscores on either side block a match."""
        assert find_whole_word(f"{neighbour}ramsey", "ramsey") == -1
        assert find_whole_word(f"ramsey{neighbour}", "ramsey") == -1


class TestDetect:
    """Test detection against a stored manuscript."""

    @pytest.fixture
    def catalogue(self, store, project):
        return [
            store.create_entity(project.id, "Commander Blake", "character"),
            store.create_entity(project.id, "Blacksite Omega", "location"),
            store.create_entity(project.id, "Shadow Council", "organization"),
        ]

    def test_commander_blake_scenario(self, store, project, catalogue, add_manuscript):
        """Re-running detection finds the same matches but records nothing new."""
        manuscript, _ = add_manuscript("Book One", [BLAKE_TEXT, BLAKE_TEXT])
        detector = EntityDetector(store)

        first = detector.detect(project.id, manuscript.id)
        assert first.total_matches == 6
        assert first.new_appearances == 6
        assert all(d.is_new for d in first.details)

        second = detector.detect(project.id, manuscript.id)
        assert second.total_matches == 6
        assert second.new_appearances == 0
        assert not any(d.is_new for d in second.details)
        assert len(store.list_appearances(manuscript_id=manuscript.id)) == 6

    def test_appearance_fields(self, store, project, catalogue, add_manuscript):
        """Auto-detected appearances carry chapter, manuscript, note and text range."""
        manuscript, chapters = add_manuscript("Book One", [BLAKE_TEXT])
        EntityDetector(store).detect(project.id, manuscript.id)

        blake = catalogue[0]
        (appearance,) = store.list_appearances(entity_id=blake.id)
        assert appearance.chapter_id == chapters[0].id
        assert appearance.manuscript_id == manuscript.id
        assert appearance.notes == "Auto-detected"
        assert (appearance.text_range_start, appearance.text_range_end) == (0, len("commander blake"))

    def test_first_name_match(self, store, project, catalogue, add_manuscript):
        """A character is found by first name alone."""
        manuscript, _ = add_manuscript("Book One", ["Later, Commander spoke to nobody."])
        summary = EntityDetector(store).detect(project.id, manuscript.id)
        (detail,) = summary.details
        assert detail.entity_name == "Commander Blake"

    def test_alias_priority(self, store, project, add_manuscript):
        """The full name is preferred over an alias within a chapter."""
        kate = store.create_entity(
            project.id, "Katherine Shaw", "character", {"aliases": ["Kate", "Katherine Shaw"]}
        )
        manuscript, chapters = add_manuscript(
            "Book One",
            ["Kate walked in.", "Kate met Katherine Shaw's twin. Katherine Shaw left."],
        )
        summary = EntityDetector(store).detect(project.id, manuscript.id)

        assert summary.total_matches == 2
        assert [d.chapter_id for d in summary.details] == [c.id for c in chapters]
        assert summary.details[0].offset == 0
        # Full name wins over the alias when both occur
        assert summary.details[1].offset == chapters[1].body.index("Katherine Shaw")
        assert len(store.list_appearances(entity_id=kate.id)) == 2

    def test_word_boundary_respected(self, store, project, add_manuscript):
        """Names embedded in longer words are not detected."""
        store.create_entity(project.id, "Ramsey", "character")
        manuscript, _ = add_manuscript("Book One", ["Ramseyson arrived.", "Old Ramsey arrived."])
        summary = EntityDetector(store).detect(project.id, manuscript.id)
        assert summary.total_matches == 1

    def test_case_insensitive(self, store, project, add_manuscript):
        """Matching ignores case."""
        store.create_entity(project.id, "Ramsey", "character")
        manuscript, _ = add_manuscript("Book One", ["RAMSEY! Get down!"])
        assert EntityDetector(store).detect(project.id, manuscript.id).total_matches == 1

    def test_no_entities(self, store, project, add_manuscript):
        """An empty catalogue yields an empty summary."""
        manuscript, _ = add_manuscript("Book One", [BLAKE_TEXT])
        summary = EntityDetector(store).detect(project.id, manuscript.id)
        assert summary.total_matches == 0
        assert summary.details == []

    def test_manual_appearance_not_duplicated(self, store, project, add_manuscript):
        """An existing manual appearance is counted but not duplicated."""
        ramsey = store.create_entity(project.id, "Ramsey", "character")
        manuscript, chapters = add_manuscript("Book One", ["Ramsey ran."])
        store.add_appearance(ramsey.id, manuscript.id, chapters[0].id, notes="Confirmed by author")

        summary = EntityDetector(store).detect(project.id, manuscript.id)
        assert summary.total_matches == 1
        assert summary.new_appearances == 0
        assert len(store.list_appearances(entity_id=ramsey.id)) == 1


class TestCrossBook:
    """Test cross-book reporting."""

    def test_entity_detected_in_new_book(self, store, project, add_manuscript):
        """An entity seen in an earlier book is reported when found in a new one."""
        knox = store.create_entity(project.id, "Knox", "character")
        book_a, a_chapters = add_manuscript("Book A", ["Knox waited."])
        store.add_appearance(knox.id, book_a.id, a_chapters[0].id, notes="Confirmed by author")

        book_b, _ = add_manuscript("Book B", ["Years later, Knox returned."])
        summary = EntityDetector(store).detect(project.id, book_b.id)

        (entry,) = summary.cross_book_entities
        assert entry.entity_id == knox.id
        assert entry.existing_books == ["Book A"]
        assert entry.new_books == ["Book B"]

    def test_first_appearance_anywhere_not_reported(self, store, project, add_manuscript):
        """A first-ever appearance is not a cross-book event."""
        store.create_entity(project.id, "Knox", "character")
        book, _ = add_manuscript("Book A", ["Knox waited."])
        summary = EntityDetector(store).detect(project.id, book.id)
        assert summary.new_appearances == 1
        assert summary.cross_book_entities == []

    def test_full_project_merges_new_books(self, store, project, add_manuscript):
        """Whole-project detection merges every new book per entity."""
        knox = store.create_entity(project.id, "Knox", "character")
        store.create_entity(project.id, "Vex", "character")
        book_a, _ = add_manuscript("Book A", ["Knox waited."])
        book_b, _ = add_manuscript("Book B", ["Knox returned.", "Vex laughed."])
        book_c, _ = add_manuscript("Book C", ["Knox again."])

        summary = EntityDetector(store).detect_full_project(project.id)

        assert summary.total_matches == 4
        assert summary.new_appearances == 4
        assert [d.manuscript_id for d in summary.details] == [book_a.id, book_b.id, book_b.id, book_c.id]

        (entry,) = summary.cross_book_entities
        assert entry.entity_id == knox.id
        assert entry.new_books == ["Book B", "Book C"]

        rerun = EntityDetector(store).detect_full_project(project.id)
        assert rerun.new_appearances == 0
        assert rerun.total_matches == 4

    def test_to_dict(self, store, project, add_manuscript):
        """Summaries serialize with plain values."""
        store.create_entity(project.id, "Knox", "character")
        book, _ = add_manuscript("Book A", ["Knox waited."])
        data = EntityDetector(store).detect(project.id, book.id).to_dict()
        assert data["total_matches"] == 1
        assert data["details"][0]["entity_type"] == "character"
