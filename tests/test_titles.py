"""
Tests for title normalization and matching
"""
import pytest

from nexuslib.candidates import Mechanism
from nexuslib.titles import (
    canonical_key,
    clean_display_title,
    clean_search_title,
    is_confident_match,
    lookup_by_title,
    normalize_title,
    title_similarity,
)


class TestNormalizeTitle:
    """Tests for the cross-source matching key"""

    @pytest.mark.parametrize("title,expected", [
        ("Hollow Knight", "hollowknight"),
        ("Skyrim Special Edition", "skyrimspecial"),
        ("The Witcher 3: Wild Hunt - Complete Edition", "thewitcher3wildhunt"),
        ("Complete Edition", "complete"),
        ("DOOM (2016) GOTY", "doom2016"),
        ("Pokémon", "pokmon"),
        ("", ""),
    ])
    def test_normalize(self, title, expected):
        """Test punctuation, case and edition suffixes are dropped"""
        assert normalize_title(title) == expected

    @pytest.mark.parametrize("title", [
        "Dark Souls Remastered",
        "Skyrim Special Edition",
        "Mass Effect Legendary Edition",
        "Complete Edition",
    ])
    def test_idempotent(self, title):
        """Test normalizing twice gives the same key"""
        once = normalize_title(title)
        assert normalize_title(once) == once

    def test_none_is_empty(self):
        """Test missing titles normalize to an empty key"""
        assert normalize_title(None) == ""


class TestCanonicalKey:
    """Tests for canonical key construction"""

    def test_identifier_wins(self):
        """Test the mechanism identifier is used when present"""
        assert canonical_key(Mechanism.STEAM, "1145360", "Hades") == "steam_1145360"

    def test_title_fallback(self):
        """Test the title is used when there is no identifier"""
        assert canonical_key(Mechanism.EPIC, None, "Hollow Knight") == "epic_hollowknight"

    def test_manual_entries(self):
        """Test entries without a mechanism get the manual prefix"""
        assert canonical_key(None, None, "My Game") == "manual_mygame"


class TestSimilarity:
    """Tests for fuzzy search acceptance"""

    def test_identical(self):
        """Test identical titles score 1"""
        assert title_similarity("Hades", "HADES") == 1.0

    def test_distance_ratio(self):
        """Test six substitutions over ten characters score 0.4"""
        assert title_similarity("Alpha Bravo", "Alphxyzwqu") == pytest.approx(0.4)

    def test_low_similarity_rejected(self):
        """Test a 0.4 match is below the acceptance threshold"""
        assert not is_confident_match("Alpha Bravo", "Alphxyzwqu")

    def test_containment_accepted(self):
        """Test containment in either direction is accepted"""
        assert is_confident_match("Hollow Knight", "Hollow Knight: Voidheart Edition")
        assert is_confident_match("Hollow Knight Voidheart", "Hollow Knight")

    def test_close_spelling_accepted(self):
        """Test a near spelling is above threshold"""
        assert is_confident_match("Stardew Valey", "Stardew Valley")

    def test_empty_rejected(self):
        """Test empty strings never match"""
        assert not is_confident_match("", "Hades")


class TestCleaning:
    """Tests for display and search title cleanup"""

    def test_search_title_drops_edition_clause(self):
        """Test edition clauses are removed before searching"""
        assert clean_search_title("Elden Ring: Deluxe Edition") == "Elden Ring"
        assert clean_search_title("Control - Ultimate Edition") == "Control"

    def test_search_title_strips_quotes(self):
        """Test quotes cannot break the search query"""
        assert clean_search_title('The "Game"') == "The Game"

    def test_display_title_strips_trademarks(self):
        """Test trademark symbols and extra spaces are removed"""
        assert clean_display_title("Battlefield™  2042") == "Battlefield 2042"
        assert clean_display_title("The Sims® 4") == "The Sims 4"


class TestLookupByTitle:
    """Tests for table lookups by title"""

    def test_exact(self):
        """Test exact lowercase keys match"""
        assert lookup_by_title({"league of legends": 115}, "League of Legends") == 115

    def test_containment(self):
        """Test a title containing a table key matches"""
        assert lookup_by_title({"league of legends": 115}, "League of Legends (PBE)") == 115

    def test_miss(self):
        """Test unrelated and empty titles miss"""
        assert lookup_by_title({"league of legends": 115}, "Hades") is None
        assert lookup_by_title({"league of legends": 115}, "") is None
