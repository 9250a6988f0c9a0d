"""Tests for the gazetteer and noise lexicon."""

from manuscript_kb.extract.gazetteer import (
    GazetteerHit,
    is_acronym,
    is_acronym_skip,
    is_caps_noise,
    is_noise,
    is_street_address,
    lookup,
)
from manuscript_kb.models.entities import EntityType


class TestNoise:
    """Test noise-word membership."""

    def test_case_insensitive(self):
        """Noise membership ignores case."""
        assert is_noise("the")
        assert is_noise("The")
        assert is_noise("CHAPTER")

    def test_names_are_not_noise(self):
        """Ordinary names are not noise."""
        assert not is_noise("Knox")
        assert not is_noise("Ramsey")

    def test_categories(self):
        """Connectives, days, months, numbers, nationalities and book words are noise."""
        for word in ["however", "monday", "december", "twelve", "russian", "epilogue", "agent"]:
            assert is_noise(word), word


class TestLookup:
    """Test gazetteer lookups."""

    def test_exact_location(self):
        """Listed locations carry their listed confidence."""
        assert lookup("Shanghai") == GazetteerHit(EntityType.LOCATION, 90)
        assert lookup("New York") == GazetteerHit(EntityType.LOCATION, 95)
        assert lookup("China") == GazetteerHit(EntityType.LOCATION, 85)
        assert lookup("Camp David") == GazetteerHit(EntityType.LOCATION, 90)

    def test_exact_organization(self):
        """Listed organizations carry their listed confidence."""
        assert lookup("FBI") == GazetteerHit(EntityType.ORGANIZATION, 95)
        assert lookup("NATO") == GazetteerHit(EntityType.ORGANIZATION, 90)
        assert lookup("SCADA") == GazetteerHit(EntityType.ORGANIZATION, 70)

    def test_lookup_is_case_sensitive(self):
        """Exact lookups respect case."""
        assert lookup("shanghai") is None

    def test_location_suffix(self):
        """Location keyword suffixes hit at 80."""
        assert lookup("Hart Plaza") == GazetteerHit(EntityType.LOCATION, 80)
        assert lookup("Blacksite Tower") == GazetteerHit(EntityType.LOCATION, 80)

    def test_organization_suffix(self):
        """Organization keyword suffixes hit at 80."""
        assert lookup("Movement Festival") == GazetteerHit(EntityType.ORGANIZATION, 80)
        assert lookup("Shadow Council") == GazetteerHit(EntityType.ORGANIZATION, 80)

    def test_suffix_needs_multiple_words(self):
        """A bare keyword is not a hit."""
        assert lookup("Plaza") is None

    def test_unknown(self):
        """Unknown names miss."""
        assert lookup("Vex") is None


class TestShapeChecks:
    """Test street, acronym and caps checks."""

    def test_street_address(self):
        """Multi-word names ending in a street suffix are addresses."""
        assert is_street_address("Saginaw Street")
        assert is_street_address("Woodward Avenue")
        assert not is_street_address("Street")
        assert not is_street_address("Liu Wei")

    def test_caps_noise(self):
        """Shouted common words are caps noise but acronyms are not."""
        assert is_caps_noise("HELLO")
        assert is_caps_noise("NOTHING")  # 4+ letter noise word
        assert not is_caps_noise("MSS")
        assert not is_caps_noise("THE")  # too short for the noise-word rule

    def test_acronym_skip(self):
        """Everyday abbreviations are skipped."""
        assert is_acronym_skip("OK")
        assert is_acronym_skip("TV")
        assert not is_acronym_skip("CIA")

    def test_is_acronym(self):
        """Acronyms are two to six uppercase letters."""
        assert is_acronym("CIA")
        assert is_acronym("SCADA")
        assert not is_acronym("C")
        assert not is_acronym("TOOLONGX")
        assert not is_acronym("Cia")
