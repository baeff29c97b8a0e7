"""
Scan orchestration: adapters -> aggregation -> enrichment -> merge.

Adapters run concurrently; aggregation and merge stay on the calling thread
so priority order and per-entry commits are deterministic.
"""
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import structlog

from nexuslib.aggregator import CandidateAggregator, order_by_priority
from nexuslib.candidates import CandidateGame, Mechanism
from nexuslib.constants import DEFAULT_PRIORITY
from nexuslib.exceptions import ValidationException
from nexuslib.merger import CatalogMerger
from nexuslib.metadata_service import build_resolver
from nexuslib.metrics import ACTIVE_SCANS, scan_duration_seconds, scans_total
from nexuslib.repositories import IgnoredGameRepository
from nexuslib.scanners import build_adapters
from nexuslib.utils import format_datetime, now_utc

logger = structlog.get_logger("scanner")

STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
STATUS_ALREADY_RUNNING = "already_running"


@dataclass
class ScanResult:
    status: str
    games: List = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)
    started_at: Optional[object] = None
    finished_at: Optional[object] = None

    @property
    def completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    def to_dict(self, include_games=False):
        data = {
            "status": self.status,
            "counts": dict(self.counts),
            "games": len(self.games),
            "started_at": format_datetime(self.started_at),
            "finished_at": format_datetime(self.finished_at),
        }
        if include_games:
            data["games"] = [g.to_dict() for g in self.games]
        return data


class ScannerService:
    def __init__(self, adapters, resolver, merger=None, ignored_provider=None, settings=None):
        self.adapters = dict(adapters)
        self.resolver = resolver
        self.merger = merger or CatalogMerger()
        self.ignored_provider = ignored_provider or IgnoredGameRepository.ignored_sets
        self.settings = settings or {}
        self._lock = threading.Lock()

    @property
    def scan_settings(self):
        return self.settings.get("scan", {}) or {}

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def run_adapters(self, should_cancel=None) -> Dict[Mechanism, List[CandidateGame]]:
        """Run every adapter in a thread pool; failures yield empty lists"""
        if not self.adapters:
            return {}
        workers = max(1, int(self.scan_settings.get("max_workers", 4)))
        results = {}
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {}
            for mechanism, adapter in self.adapters.items():
                if should_cancel and should_cancel():
                    break
                futures[mechanism] = executor.submit(adapter.scan)
            for mechanism, future in futures.items():
                results[mechanism] = future.result()
        return results

    def _ignored(self):
        titles, keys = self.ignored_provider()
        return CandidateAggregator(titles, keys)

    def scan_all(self, progress: Optional[Callable] = None, cancel_event: Optional[threading.Event] = None) -> ScanResult:
        """
        Full scan. Returns immediately with status `already_running` when
        another scan holds the lock.
        """
        if not self._lock.acquire(blocking=False):
            logger.info("Scan already in progress, skipping")
            scans_total.labels(status=STATUS_ALREADY_RUNNING).inc()
            return ScanResult(status=STATUS_ALREADY_RUNNING)

        try:
            with ACTIVE_SCANS.track_inprogress(), scan_duration_seconds.time():
                result = self._scan_all(progress, cancel_event)
            scans_total.labels(status=result.status).inc()
            return result
        finally:
            self._lock.release()

    def _scan_all(self, progress, cancel_event) -> ScanResult:
        started_at = now_utc()
        started = time.monotonic()

        def should_cancel():
            return cancel_event is not None and cancel_event.is_set()

        def report(percent, message):
            if progress:
                progress(int(percent), message)

        counts = {}

        if self.scan_settings.get("cleanup_duplicates", True):
            counts["duplicates_removed"] = self.merger.cleanup_duplicates()

        report(5, "Scanning installed games")
        raw = self.run_adapters(should_cancel)
        counts["discovered"] = sum(len(v) for v in raw.values())

        report(30, "Removing duplicates")
        aggregator = self._ignored()
        ordered = order_by_priority(raw, self.scan_settings.get("priority") or DEFAULT_PRIORITY)
        unique = aggregator.aggregate(ordered, should_cancel)
        counts["unique"] = len(unique)
        counts["ignored"] = aggregator.dropped_ignored

        report(40, f"Fetching metadata for {len(unique)} games")
        enriched = self.resolver.enrich_all(
            unique,
            max_workers=self.scan_settings.get("metadata_workers", 4),
            should_cancel=should_cancel,
            progress=lambda done, total: report(40 + 40 * done / max(total, 1), f"Metadata {done}/{total}"),
        )

        report(80, "Saving library")
        games = self.merger.merge(enriched, should_cancel)
        counts.update(self.merger.counts)
        counts["merged"] = len(games)

        cancelled = should_cancel()
        if not cancelled and self.scan_settings.get("remove_missing", False):
            healthy = [m for m, adapter in self.adapters.items() if not adapter.failed]
            all_candidates = [c for candidates in raw.values() for c in candidates]
            counts["removed"] = self.merger.remove_stale_entries(all_candidates, mechanisms=healthy)

        status = STATUS_CANCELLED if cancelled else STATUS_COMPLETED
        report(100, "Scan cancelled" if cancelled else f"Scan complete: {len(games)} games")
        logger.info(
            "Scan finished",
            status=status,
            elapsed=round(time.monotonic() - started, 2),
            **counts,
        )
        return ScanResult(status=status, games=games, counts=counts, started_at=started_at, finished_at=now_utc())

    def scan_source(self, mechanism) -> List[CandidateGame]:
        """Scan, filter and enrich a single mechanism without persisting"""
        parsed = Mechanism.parse(mechanism)
        adapter = self.adapters.get(parsed)
        if adapter is None:
            raise ValidationException(f"Unknown or disabled source: {mechanism}")

        candidates = adapter.scan()
        unique = self._ignored().aggregate([(parsed, candidates)])
        return self.resolver.enrich_all(unique, max_workers=self.scan_settings.get("metadata_workers", 4))


def build_scanner_service(settings, clock=now_utc) -> ScannerService:
    return ScannerService(
        adapters=build_adapters(settings),
        resolver=build_resolver(settings, clock=clock),
        merger=CatalogMerger(),
        settings=settings,
    )
