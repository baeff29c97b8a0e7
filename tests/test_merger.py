"""
Tests for reconciling candidates with the persisted catalog
"""
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from nexuslib.candidates import GameStatus, Mechanism
from nexuslib.constants import DEFAULT_DESCRIPTION, DEFAULT_DEVELOPER
from nexuslib.exceptions import PersistenceException
from nexuslib.merger import CatalogMerger
from nexuslib.models.game import Game
from nexuslib.repositories import GameRepository, IgnoredGameRepository


def hades(make_candidate, **kwargs):
    return make_candidate("Hades", Mechanism.STEAM, app_id="1145360", **kwargs)


class TestMerge:
    """Tests for create and update"""

    def test_create(self, app_ctx, make_candidate):
        """Test a new candidate creates one entry"""
        merger = CatalogMerger()
        games = merger.merge([hades(make_candidate, description="Defy the god.")])

        assert len(games) == 1
        assert merger.counts == {"created": 1}
        game = GameRepository.find_by_canonical_key("steam_1145360")
        assert game.title == "Hades"
        assert game.status == "READY"
        assert game.description == "Defy the god."

    def test_idempotent(self, app_ctx, make_candidate):
        """Test merging the same candidates twice changes nothing"""
        merger = CatalogMerger()
        merger.merge([hades(make_candidate)])
        merger.merge([hades(make_candidate)])

        assert GameRepository.count() == 1
        assert merger.counts == {"updated": 1}

    def test_scan_fields_refreshed(self, app_ctx, make_candidate):
        """Test paths and status follow the latest scan"""
        merger = CatalogMerger()
        merger.merge([hades(make_candidate)])
        merger.merge([hades(make_candidate, status=GameStatus.MISSING, install_path="/new/Hades")])

        game = GameRepository.find_by_canonical_key("steam_1145360")
        assert game.status == "MISSING"
        assert game.install_path == "/new/Hades"

    def test_user_fields_preserved(self, app_ctx, make_candidate):
        """Test favorites and custom art survive a rescan"""
        merger = CatalogMerger()
        game = merger.merge([hades(make_candidate)])[0]
        GameRepository.update_user_fields(game.id, favorite=True, custom_cover_url="https://my/cover.png")

        merger.merge([hades(make_candidate, cover_url="https://cdn/cover.jpg")])

        game = GameRepository.get_by_id(game.id)
        assert game.favorite
        assert game.custom_cover_url == "https://my/cover.png"
        assert game.cover_url == "https://cdn/cover.jpg"
        assert game.to_dict()["cover_url"] == "https://my/cover.png"

    def test_existing_metadata_not_overwritten(self, app_ctx, make_candidate):
        """Test real descriptive values are only filled while empty"""
        merger = CatalogMerger()
        merger.merge([hades(make_candidate, description="First")])
        merger.merge([hades(make_candidate, description="Second")])

        assert GameRepository.find_by_canonical_key("steam_1145360").description == "First"

    def test_placeholder_replaced(self, app_ctx, make_candidate):
        """Test default placeholders give way to real metadata"""
        merger = CatalogMerger()
        merger.merge([hades(make_candidate, description=DEFAULT_DESCRIPTION, developer=DEFAULT_DEVELOPER)])
        merger.merge([hades(make_candidate, description="Defy the god.", developer="Supergiant Games")])

        game = GameRepository.find_by_canonical_key("steam_1145360")
        assert game.description == "Defy the god."
        assert game.developer == "Supergiant Games"

    def test_duplicate_titles_in_batch(self, app_ctx, make_candidate):
        """Test one batch never creates two entries for the same title"""
        merger = CatalogMerger()
        merger.merge([hades(make_candidate), make_candidate("HADES", Mechanism.EPIC, app_id="Hades")])

        assert GameRepository.count() == 1
        assert merger.counts == {"created": 1, "duplicate": 1}


class TestRekeyAndSuppression:
    """Tests for title matches across keys"""

    def test_rekey(self, app_ctx, make_candidate):
        """Test an entry found by title moves to the new key"""
        merger = CatalogMerger()
        merger.merge([make_candidate("Hollow Knight", Mechanism.EPIC, app_id="Hollow")])
        merger.merge([make_candidate("Hollow Knight", Mechanism.STEAM, app_id="367520")])

        assert GameRepository.count() == 1
        game = GameRepository.find_all()[0]
        assert game.canonical_key == "steam_367520"
        assert game.mechanism == "steam"
        assert merger.counts == {"rekeyed": 1}

    def test_manual_not_rekeyed(self, app_ctx, make_candidate):
        """Test a user-created entry keeps its key"""
        GameRepository.create_manual("Hollow Knight", executable_path="/games/hk.exe")
        merger = CatalogMerger()
        merger.merge([make_candidate("Hollow Knight", Mechanism.STEAM, app_id="367520")])

        assert GameRepository.count() == 1
        assert GameRepository.find_all()[0].canonical_key == "manual_hollowknight"
        assert merger.counts == {"manual": 1}

    def test_ignored_not_resurrected(self, app_ctx, make_candidate):
        """Test an ignored entry is never updated or recreated"""
        merger = CatalogMerger()
        game = merger.merge([hades(make_candidate)])[0]
        IgnoredGameRepository.ignore_game(game.id)

        games = merger.merge([hades(make_candidate, install_path="/other")])

        assert games == []
        assert merger.counts == {"ignored": 1}
        game = GameRepository.get_by_id(game.id)
        assert game.ignored
        assert game.install_path == "/games/Hades"


class TestFailuresAndCancel:
    """Tests for per-entry failures and cancellation"""

    def test_persistence_failure_skipped(self, app_ctx, make_candidate):
        """Test one failing entry does not stop the rest"""

        class FlakyRepository(GameRepository):
            @staticmethod
            def save(game):
                if game.title == "Broken":
                    raise PersistenceException("disk full")
                return GameRepository.save(game)

        merger = CatalogMerger(repository=FlakyRepository)
        games = merger.merge([make_candidate("Broken", Mechanism.EA), hades(make_candidate)])

        assert [g.title for g in games] == ["Hades"]
        assert merger.counts == {"failed": 1, "created": 1}

    def test_cancel_between_entries(self, app_ctx, make_candidate):
        """Test cancellation stops after the current entry"""
        calls = []

        def should_cancel():
            calls.append(1)
            return len(calls) > 1

        merger = CatalogMerger()
        merger.merge([hades(make_candidate), make_candidate("Celeste", Mechanism.EPIC)], should_cancel)

        assert [g.title for g in GameRepository.find_all()] == ["Hades"]

    def test_lookup_failure_skipped(self, app_ctx, make_candidate):
        """Test a locked database on one lookup does not stop the rest"""
        failures = []

        class LockedOnceRepository(GameRepository):
            @staticmethod
            def find_by_canonical_key(key):
                if not failures:
                    failures.append(key)
                    raise OperationalError("SELECT games", {}, Exception("database is locked"))
                return GameRepository.find_by_canonical_key(key)

        merger = CatalogMerger(repository=LockedOnceRepository)
        games = merger.merge([hades(make_candidate), make_candidate("Celeste", Mechanism.STEAM, app_id="504230")])

        assert [g.title for g in games] == ["Celeste"]
        assert merger.counts == {"failed": 1, "created": 1}
        assert failures == ["steam_1145360"]

    def test_repository_wraps_lookup_errors(self, app_ctx):
        """Test storage errors from lookups surface as PersistenceException"""
        with patch("nexuslib.repositories.game_repository.Game") as game_model:
            game_model.query.filter_by.side_effect = OperationalError("SELECT games", {}, Exception("database is locked"))
            with pytest.raises(PersistenceException):
                GameRepository.find_by_canonical_key("steam_1145360")
            with pytest.raises(PersistenceException):
                GameRepository.find_by_normalized_title("hades")


class TestCatalogCleanup:
    """Tests for stale and duplicate removal"""

    def test_remove_stale_entries(self, app_ctx, make_candidate):
        """Test only scanned, unignored entries of the given mechanisms are removed"""
        merger = CatalogMerger()
        merger.merge([
            hades(make_candidate),
            make_candidate("Celeste", Mechanism.STEAM, app_id="504230"),
            make_candidate("Fortnite", Mechanism.EPIC, app_id="Fortnite"),
        ])
        GameRepository.create_manual("My Game")
        IgnoredGameRepository.ignore_game(GameRepository.find_by_canonical_key("steam_504230").id)

        removed = merger.remove_stale_entries([], mechanisms=[Mechanism.STEAM])

        assert removed == 1
        keys = {g.canonical_key for g in GameRepository.find_all()}
        assert keys == {"steam_504230", "epic_fortnite", "manual_mygame"}

    def test_present_entries_kept(self, app_ctx, make_candidate):
        """Test entries still present in the scan are kept"""
        merger = CatalogMerger()
        candidate = hades(make_candidate)
        merger.merge([candidate])

        assert merger.remove_stale_entries([candidate]) == 0
        assert GameRepository.count() == 1

    def test_cleanup_duplicates_keeps_favorite(self, app_ctx):
        """Test the favorite entry survives duplicate cleanup"""
        GameRepository.save(Game(title="Hades", canonical_key="epic_hades", mechanism="epic"))
        GameRepository.save(Game(title="Hades", canonical_key="steam_1145360", mechanism="steam", favorite=True))
        GameRepository.save(Game(title="Celeste", canonical_key="steam_504230", mechanism="steam"))

        removed = CatalogMerger().cleanup_duplicates()

        assert removed == 1
        keys = {g.canonical_key for g in GameRepository.find_all()}
        assert keys == {"steam_1145360", "steam_504230"}

    def test_cleanup_duplicates_keeps_oldest(self, app_ctx):
        """Test the oldest entry survives when none is special"""
        GameRepository.save(Game(title="Hades", canonical_key="epic_hades", mechanism="epic"))
        GameRepository.save(Game(title="Hades", canonical_key="steam_1145360", mechanism="steam"))

        CatalogMerger().cleanup_duplicates()

        assert [g.canonical_key for g in GameRepository.find_all()] == ["epic_hades"]

    def test_cleanup_duplicates_keeps_manual_entries(self, app_ctx):
        """Test user-created entries sharing a normalized title are all kept"""
        GameRepository.create_manual("Hollow Knight")
        GameRepository.create_manual("Hollow Knight GOTY")
        assert GameRepository.find_all()[0].normalized_title == GameRepository.find_all()[1].normalized_title

        assert CatalogMerger().cleanup_duplicates() == 0
        assert GameRepository.count() == 2

    def test_cleanup_duplicates_keeps_favorite_and_manual(self, app_ctx):
        """Test a favorite scanned entry never costs a manual entry its place"""
        GameRepository.save(Game(title="Hades", canonical_key="epic_hades", mechanism="epic"))
        GameRepository.save(Game(title="Hades", canonical_key="steam_1145360", mechanism="steam", favorite=True))
        GameRepository.create_manual("Hades")

        assert CatalogMerger().cleanup_duplicates() == 1
        keys = {g.canonical_key for g in GameRepository.find_all()}
        assert keys == {"steam_1145360", "manual_hades"}


class TestRepositories:
    """Tests for the catalog repository contract"""

    def test_set_favorite(self, app_ctx):
        """Test favorites are user edits"""
        game = GameRepository.create_manual("My Game")
        assert GameRepository.set_favorite(game.id).favorite
        assert not GameRepository.set_favorite(game.id, False).favorite

    def test_ignore_records(self, app_ctx):
        """Test ignore records are idempotent and expose their keys"""
        first = IgnoredGameRepository.ignore_title("Hollow Knight", canonical_key="steam_367520")
        second = IgnoredGameRepository.ignore_title("Hollow Knight Voidheart Edition")

        assert first.id != second.id
        assert IgnoredGameRepository.ignore_title("HOLLOW KNIGHT").id == first.id
        assert IgnoredGameRepository.is_ignored("hollowknight")
        assert not IgnoredGameRepository.is_ignored("hades")
        titles, keys = IgnoredGameRepository.ignored_sets()
        assert titles == {"hollowknight", "hollowknightvoidheart"}
        assert keys == {"steam_367520"}

    def test_delete_game_leaves_tombstone(self, app_ctx, make_candidate):
        """Test deleting a scanned entry records it, deleting a manual one does not"""
        scanned = CatalogMerger().merge([hades(make_candidate)])[0]
        manual = GameRepository.create_manual("My Game")

        assert IgnoredGameRepository.delete_game(scanned.id)
        assert IgnoredGameRepository.delete_game(manual.id)
        assert not IgnoredGameRepository.delete_game(manual.id)

        assert GameRepository.count() == 0
        records = IgnoredGameRepository.find_ignored()
        assert [(r.title, r.kind, r.canonical_key) for r in records] == [("Hades", "deleted", "steam_1145360")]
