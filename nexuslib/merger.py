"""
Reconcile scanned candidates with the persisted catalog.

Scan-owned fields (paths, status) are refreshed, descriptive metadata is only
filled where empty, and user-owned fields are never written here.
"""
from collections import OrderedDict
from typing import Callable, Iterable, List, Optional

import structlog

from sqlalchemy.exc import SQLAlchemyError

from nexuslib.candidates import CandidateGame
from nexuslib.constants import DEFAULT_DESCRIPTION, DEFAULT_DEVELOPER
from nexuslib.exceptions import PersistenceException
from nexuslib.metrics import library_games_total, merge_results_total, persistence_failures_total
from nexuslib.models.game import Game
from nexuslib.repositories import GameRepository

logger = structlog.get_logger("merger")

DESCRIPTIVE_FIELDS = ("cover_url", "hero_url", "description", "developer")
PLACEHOLDERS = {
    "description": DEFAULT_DESCRIPTION,
    "developer": DEFAULT_DEVELOPER,
}

OUTCOME_CREATED = "created"
OUTCOME_UPDATED = "updated"
OUTCOME_REKEYED = "rekeyed"
OUTCOME_MANUAL = "manual"
OUTCOME_IGNORED = "ignored"
OUTCOME_DUPLICATE = "duplicate"
OUTCOME_FAILED = "failed"

# Raised by the repository itself or by the session underneath it
STORAGE_ERRORS = (PersistenceException, SQLAlchemyError)


def _is_placeholder(field, value):
    return not value or PLACEHOLDERS.get(field) == value


def fill_descriptive_fields(game: Game, candidate: CandidateGame) -> None:
    """Copy metadata onto the entry only where the entry has nothing real yet"""
    for field in DESCRIPTIVE_FIELDS:
        new_value = getattr(candidate, field)
        if not new_value:
            continue
        current = getattr(game, field)
        if not current or (_is_placeholder(field, current) and not _is_placeholder(field, new_value)):
            setattr(game, field, new_value)


def refresh_scan_fields(game: Game, candidate: CandidateGame) -> None:
    game.install_path = candidate.install_path
    game.executable_path = candidate.executable_path
    game.status = candidate.status.value


def new_entry(candidate: CandidateGame) -> Game:
    game = Game(
        canonical_key=candidate.canonical_key,
        normalized_title=candidate.normalized_title,
        title=candidate.title,
        mechanism=candidate.mechanism.value,
        app_id=candidate.app_id,
        status=candidate.status.value,
    )
    refresh_scan_fields(game, candidate)
    fill_descriptive_fields(game, candidate)
    return game


class CatalogMerger:
    def __init__(self, repository=GameRepository):
        self.repository = repository
        self.counts = {}

    def _count(self, outcome):
        self.counts[outcome] = self.counts.get(outcome, 0) + 1
        merge_results_total.labels(outcome=outcome).inc()

    def _rollback(self):
        try:
            self.repository.rollback()
        except SQLAlchemyError as e:
            logger.warning(f"Rollback failed: {e}")

    def _update_library_size(self):
        try:
            library_games_total.set(self.repository.count())
        except SQLAlchemyError as e:
            self._rollback()
            logger.warning(f"Could not count library entries: {e}")

    def merge_one(self, candidate: CandidateGame):
        """Merge a single candidate; returns (entry or None, outcome)"""
        game = self.repository.find_by_canonical_key(candidate.canonical_key)
        outcome = OUTCOME_UPDATED

        if game is None:
            game = self.repository.find_by_normalized_title(candidate.normalized_title)
            if game is not None and not game.ignored:
                if game.is_manual:
                    # User-created entries keep their own key and paths
                    return game, OUTCOME_MANUAL
                logger.info(f"Re-keying {game.canonical_key} -> {candidate.canonical_key}")
                game.canonical_key = candidate.canonical_key
                game.mechanism = candidate.mechanism.value
                game.app_id = candidate.app_id
                outcome = OUTCOME_REKEYED

        if game is not None and game.ignored:
            return None, OUTCOME_IGNORED

        if game is None:
            game = new_entry(candidate)
            outcome = OUTCOME_CREATED
        else:
            refresh_scan_fields(game, candidate)
            fill_descriptive_fields(game, candidate)

        return self.repository.save(game), outcome

    def merge(
        self,
        candidates: Iterable[CandidateGame],
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> List[Game]:
        """
        Persist every candidate independently. A failing entry is rolled back
        and skipped; cancellation stops between entries, never inside one.
        """
        self.counts = {}
        processed_titles = set()
        result = []

        for candidate in candidates:
            if should_cancel and should_cancel():
                logger.info("Merge cancelled", merged=len(result))
                break

            title = candidate.normalized_title
            if title in processed_titles:
                self._count(OUTCOME_DUPLICATE)
                continue
            processed_titles.add(title)

            try:
                game, outcome = self.merge_one(candidate)
            except STORAGE_ERRORS as e:
                self._rollback()
                self._count(OUTCOME_FAILED)
                persistence_failures_total.inc()
                logger.error(f"Error saving {candidate.title}: {e}")
                continue

            self._count(outcome)
            if game is not None:
                result.append(game)

        self._update_library_size()
        logger.info("Merge finished", **self.counts)
        return result

    def remove_stale_entries(self, candidates: Iterable[CandidateGame], mechanisms=None) -> int:
        """
        Delete scanned entries that no longer appear in a complete candidate
        set. Manual and ignored entries are kept. With `mechanisms`, only
        entries of those mechanisms are eligible.
        """
        present = {c.canonical_key for c in candidates}
        allowed = None
        if mechanisms is not None:
            allowed = {getattr(m, "value", m) for m in mechanisms}

        removed = 0
        for game in self.repository.find_all():
            if game.is_manual or game.ignored or game.canonical_key in present:
                continue
            if allowed is not None and game.mechanism not in allowed:
                continue
            key = game.canonical_key
            try:
                if self.repository.delete(game.id):
                    removed += 1
                    logger.info(f"Removed stale entry {key}")
            except STORAGE_ERRORS as e:
                self._rollback()
                persistence_failures_total.inc()
                logger.error(f"Error removing {key}: {e}")

        if removed:
            self._update_library_size()
        return removed

    def cleanup_duplicates(self) -> int:
        """
        Collapse scanned entries sharing a normalized title. Manual and
        favorite entries are never removed; when a group has none, the oldest
        entry survives.
        """
        groups = OrderedDict()
        for game in self.repository.find_all():
            groups.setdefault(game.normalized_title, []).append(game)

        removed = 0
        for games in groups.values():
            if len(games) < 2:
                continue
            protected = [g for g in games if g.is_manual or g.favorite]
            keepers = protected or games[:1]
            kept_key = keepers[0].canonical_key
            for game in games:
                if any(game is k for k in keepers):
                    continue
                key = game.canonical_key
                try:
                    if self.repository.delete(game.id):
                        removed += 1
                        logger.info(f"Removed duplicate {key} (kept {kept_key})")
                except STORAGE_ERRORS as e:
                    self._rollback()
                    persistence_failures_total.inc()
                    logger.error(f"Error removing duplicate {key}: {e}")

        return removed
