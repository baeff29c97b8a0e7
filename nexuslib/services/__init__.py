"""
External metadata services
"""

from .fallback_metadata import FallbackMetadata
from .igdb_client import CatalogGame, IGDBClient
from .steam_store_client import SteamAppDetails, SteamStoreClient

__all__ = [
    "CatalogGame",
    "FallbackMetadata",
    "IGDBClient",
    "SteamAppDetails",
    "SteamStoreClient",
]
