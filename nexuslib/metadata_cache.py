"""
In-memory metadata cache with expiry and hit/miss statistics.

Shared by the resolver's worker threads; every access goes through one lock.
The clock is injectable so expiry can be tested without sleeping.
"""
import threading
from datetime import timedelta
from typing import Callable, Dict, Optional, Tuple

import structlog

from nexuslib.candidates import MetadataRecord
from nexuslib.constants import CACHE_EXPIRY_HOURS
from nexuslib.utils import now_utc

logger = structlog.get_logger("metadata_cache")


class MetadataCache:
    def __init__(self, expiry_hours: float = CACHE_EXPIRY_HOURS, clock: Callable = now_utc):
        self.expiry = timedelta(hours=expiry_hours)
        self.clock = clock
        self._entries: Dict[str, Tuple[MetadataRecord, object]] = {}
        self._lock = threading.Lock()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "expirations": 0,
        }

    def get(self, key: str) -> Optional[MetadataRecord]:
        """Cached record for `key`, or None when absent or expired"""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return None

            record, stored_at = entry
            if self.clock() - stored_at > self.expiry:
                del self._entries[key]
                self._stats["expirations"] += 1
                self._stats["misses"] += 1
                logger.debug(f"Cache EXPIRED: {key}")
                return None

            self._stats["hits"] += 1
            return record

    def set(self, key: str, record: MetadataRecord) -> None:
        with self._lock:
            self._entries[key] = (record, self.clock())
            self._stats["sets"] += 1

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_stats(self) -> Dict:
        with self._lock:
            return {**self._stats, "size": len(self._entries)}

    def reset_stats(self) -> None:
        with self._lock:
            for name in self._stats:
                self._stats[name] = 0

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, key):
        with self._lock:
            return key in self._entries
