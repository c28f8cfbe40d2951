"""Tests for country name normalization and fuzzy suggestions."""

import pytest

from climate_core.countries import normalize, suggest_countries


class TestNormalize:
    """normalize() is the only join key across datasets."""

    def test_strips_parenthetical(self):
        assert normalize("Congo (Kinshasa)") == "congo"

    def test_trims_and_lowercases(self):
        assert normalize("  USA  ") == "usa"

    @pytest.mark.parametrize("raw", [None, "", 42, 3.5, ["France"], {"name": "France"}])
    def test_non_strings_are_unmatchable(self, raw):
        assert normalize(raw) == ""

    def test_long_official_name_suffix(self):
        assert normalize("United Kingdom of Great Britain and Northern Ireland (the)") == (
            "united kingdom of great britain and northern ireland"
        )

    def test_folds_accents_and_inner_whitespace(self):
        assert normalize("Côte  d'Ivoire") == "cote d'ivoire"
        assert normalize("Türkiye") == "turkiye"

    def test_whitespace_only_is_unmatchable(self):
        assert normalize("   ") == ""
        assert normalize("(the)") == ""


class TestSuggestCountries:
    NAMES = ["France", "Kenya", "Germany", "Congo (Kinshasa)", "Finland"]

    def test_close_misspelling(self):
        hits = suggest_countries("Frnace", self.NAMES)
        assert hits and hits[0][0] == "France"

    def test_limit_and_threshold(self):
        assert len(suggest_countries("an", self.NAMES, limit=2, threshold=0)) == 2
        assert suggest_countries("zzzzzz", self.NAMES) == []

    def test_empty_query(self):
        assert suggest_countries(None, self.NAMES) == []
