"""
Tiered metadata resolution for scanned candidates.

Order: cache -> direct IGDB id -> Steam storefront -> IGDB fuzzy search ->
hardcoded fallback table -> generic default. A failing tier is logged and
treated as a miss; `resolve()` itself never raises.
"""
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional

import structlog

from nexuslib.candidates import CandidateGame, MetadataRecord, Mechanism
from nexuslib.constants import DEFAULT_DESCRIPTION, DEFAULT_DEVELOPER, SIMILARITY_THRESHOLD
from nexuslib.metadata_cache import MetadataCache
from nexuslib.metrics import metadata_resolutions_total, metadata_tier_errors_total
from nexuslib.services import FallbackMetadata, IGDBClient, SteamStoreClient
from nexuslib.services.fallback_metadata import DEFAULT_SOURCE
from nexuslib.titles import clean_search_title, is_confident_match, lookup_by_title
from nexuslib.utils import now_utc

logger = structlog.get_logger("metadata")

# Titles whose IGDB entry is known; looked up by exact name, then containment
KNOWN_IGDB_IDS = {
    "league of legends": 115,
    "valorant": 126459,
    "teamfight tactics": 120227,
    "minecraft": 121,
    "minecraft dungeons": 113520,
    "minecraft legends": 204642,
    "genshin impact": 119277,
    "honkai: star rail": 171536,
    "honkai impact 3rd": 37582,
    "zenless zone zero": 217590,
    "fortnite": 1905,
    "roblox": 17767,
    "osu!": 3510,
    "counter-strike 2": 194078,
    "dota 2": 2963,
    "apex legends": 114455,
    "overwatch 2": 152589,
    "world of warcraft": 123,
    "diablo iv": 121971,
    "path of exile 2": 119388,
    "path of exile": 5,
    "warframe": 2357,
    "destiny 2": 25657,
    "final fantasy xiv": 393,
    "the sims 4": 5765,
    "ea sports fc 24": 252370,
    "ea sports fc 25": 280882,
    "rocket league": 9540,
    "fall guys": 119324,
    "among us": 68452,
    "dead by daylight": 14913,
    "pubg: battlegrounds": 22509,
    "grand theft auto v": 1020,
    "red dead redemption 2": 25076,
    "cyberpunk 2077": 1877,
    "elden ring": 119133,
    "dark souls iii": 11133,
    "sekiro: shadows die twice": 38050,
    "baldur's gate 3": 119171,
    "the witcher 3": 1942,
    "hogwarts legacy": 119304,
    "palworld": 217589,
    "lethal company": 238091,
}

TIER_CACHE = "cache"
TIER_DIRECT_ID = "igdb_id"
TIER_STEAM = "steam"
TIER_SEARCH = "igdb_search"
TIER_FALLBACK = "fallback"


def _record_from_catalog(game, source) -> Optional[MetadataRecord]:
    if game is None:
        return None
    record = MetadataRecord(
        cover_url=game.cover_url,
        hero_url=game.hero_url,
        description=game.summary,
        developer=game.developer,
        source=source,
    )
    return None if record.is_empty() else record


def apply_metadata(candidate: CandidateGame, record: MetadataRecord) -> CandidateGame:
    """Fill only the candidate fields that are still empty"""
    if record is None:
        return candidate
    if not candidate.cover_url and record.cover_url:
        candidate.cover_url = record.cover_url
    if not candidate.hero_url and record.hero_url:
        candidate.hero_url = record.hero_url
    if not candidate.description and record.description:
        candidate.description = record.description
    if not candidate.developer and record.developer:
        candidate.developer = record.developer
    if candidate.metadata_source is None:
        candidate.metadata_source = record.source
    return candidate


class MetadataResolver:
    def __init__(
        self,
        cache: Optional[MetadataCache] = None,
        catalog_client=None,
        storefront_client=None,
        fallback: Optional[FallbackMetadata] = None,
        known_ids: Optional[Dict[str, int]] = None,
        clock: Callable = now_utc,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
    ):
        self.cache = cache if cache is not None else MetadataCache(clock=clock)
        self.catalog_client = catalog_client
        self.storefront_client = storefront_client
        self.fallback = fallback or FallbackMetadata()
        self.known_ids = KNOWN_IGDB_IDS if known_ids is None else known_ids
        self.clock = clock
        self.similarity_threshold = similarity_threshold

    def _tier(self, tier, func, candidate):
        try:
            return func(candidate)
        except Exception as e:
            metadata_tier_errors_total.labels(tier=tier).inc()
            logger.warning(f"Metadata tier {tier} failed for {candidate.title}: {e}")
            return None

    def _direct_id(self, candidate) -> Optional[MetadataRecord]:
        if self.catalog_client is None:
            return None
        igdb_id = lookup_by_title(self.known_ids, candidate.title)
        if igdb_id is None:
            return None
        return _record_from_catalog(self.catalog_client.get_by_id(igdb_id), TIER_DIRECT_ID)

    def _steam(self, candidate) -> Optional[MetadataRecord]:
        if self.storefront_client is None or candidate.mechanism != Mechanism.STEAM or not candidate.app_id:
            return None

        record = MetadataRecord(
            cover_url=self.storefront_client.cover_url(candidate.app_id),
            hero_url=self.storefront_client.hero_url(candidate.app_id),
            source=TIER_STEAM,
        )
        # Art URLs are deterministic; a failed details call still leaves them usable
        try:
            details = self.storefront_client.get_app_details(candidate.app_id)
        except Exception as e:
            metadata_tier_errors_total.labels(tier=TIER_STEAM).inc()
            logger.warning(f"Steam details failed for {candidate.title}: {e}")
            details = None
        if details is not None:
            record.description = details.short_description
            record.developer = details.developer
        return record

    def _search(self, candidate) -> Optional[MetadataRecord]:
        if self.catalog_client is None:
            return None
        query = clean_search_title(candidate.title)
        if not query:
            return None
        found = self.catalog_client.search(query)
        if found is None:
            return None
        if not is_confident_match(query, found.name, self.similarity_threshold):
            logger.debug(f"Rejected low-confidence match '{found.name}' for '{candidate.title}'")
            return None
        return _record_from_catalog(found, TIER_SEARCH)

    def _fallback(self, candidate) -> Optional[MetadataRecord]:
        return self.fallback.lookup(candidate.title)

    def resolve(self, candidate: CandidateGame) -> MetadataRecord:
        key = candidate.cache_key
        cached = self.cache.get(key)
        if cached is not None:
            metadata_resolutions_total.labels(tier=TIER_CACHE).inc()
            return cached

        tiers = (
            (TIER_DIRECT_ID, self._direct_id),
            (TIER_STEAM, self._steam),
            (TIER_SEARCH, self._search),
            (TIER_FALLBACK, self._fallback),
        )
        record = None
        for tier, func in tiers:
            record = self._tier(tier, func, candidate)
            if record is not None:
                break
        if record is None:
            record = self.fallback.default()

        self._fill_defaults(record)
        metadata_resolutions_total.labels(tier=record.source).inc()
        # The generic default is a miss; the next resolve tries every tier again
        if record.source != DEFAULT_SOURCE:
            self.cache.set(key, record)
        return record

    @staticmethod
    def _fill_defaults(record):
        if not record.description:
            record.description = DEFAULT_DESCRIPTION
        if not record.developer:
            record.developer = DEFAULT_DEVELOPER

    def enrich(self, candidate: CandidateGame) -> CandidateGame:
        return apply_metadata(candidate, self.resolve(candidate))

    def enrich_all(
        self,
        candidates: Iterable[CandidateGame],
        max_workers: int = 4,
        should_cancel: Optional[Callable[[], bool]] = None,
        progress: Optional[Callable[[int, int], None]] = None,
    ) -> List[CandidateGame]:
        """
        Enrich candidates in a bounded pool. Candidates not started before a
        cancellation are dropped; the result keeps input order.
        """
        candidates = list(candidates)
        if not candidates:
            return []

        def work(candidate):
            if should_cancel and should_cancel():
                return None
            return self.enrich(candidate)

        enriched = []
        with ThreadPoolExecutor(max_workers=max(1, int(max_workers))) as executor:
            futures = [executor.submit(work, c) for c in candidates]
            for index, future in enumerate(futures, start=1):
                result = future.result()
                if result is not None:
                    enriched.append(result)
                if progress:
                    progress(index, len(futures))
        return enriched


def build_resolver(settings, clock: Callable = now_utc) -> MetadataResolver:
    """Resolver wired from the `metadata` and `apis` settings sections"""
    metadata_settings = settings.get("metadata", {}) or {}
    timeout = metadata_settings.get("request_timeout", 5)
    igdb = (settings.get("apis", {}) or {}).get("igdb", {}) or {}

    catalog_client = IGDBClient(igdb.get("client_id"), igdb.get("client_secret"), timeout=timeout)
    if not catalog_client.enabled:
        logger.info("IGDB credentials not configured, catalog tiers disabled")

    return MetadataResolver(
        cache=MetadataCache(expiry_hours=metadata_settings.get("cache_expiry_hours", 168), clock=clock),
        catalog_client=catalog_client,
        storefront_client=SteamStoreClient(timeout=timeout),
        fallback=FallbackMetadata(),
        clock=clock,
        similarity_threshold=metadata_settings.get("similarity_threshold", SIMILARITY_THRESHOLD),
    )
