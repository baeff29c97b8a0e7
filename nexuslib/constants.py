import os

CONFIG_DIR = os.environ.get("NEXUS_CONFIG_DIR", os.path.join(os.path.expanduser("~"), ".nexus"))
DB_FILE = os.path.join(CONFIG_DIR, "nexus.db")
CONFIG_FILE = os.path.join(CONFIG_DIR, "settings.yaml")

NEXUS_DB = "sqlite:///" + DB_FILE

BUILD_VERSION = "20261018_1200"

# Mechanism names, in default priority order (storefronts first)
MECHANISM_STEAM = "steam"
MECHANISM_EPIC = "epic"
MECHANISM_RIOT = "riot"
MECHANISM_BATTLENET = "battlenet"
MECHANISM_EA = "ea"
MECHANISM_STANDALONE = "standalone"

DEFAULT_PRIORITY = [
    MECHANISM_STEAM,
    MECHANISM_EPIC,
    MECHANISM_RIOT,
    MECHANISM_BATTLENET,
    MECHANISM_EA,
    MECHANISM_STANDALONE,
]

STATUS_READY = "READY"
STATUS_MISSING = "MISSING"

# Metadata resolution
SIMILARITY_THRESHOLD = 0.7
CACHE_EXPIRY_HOURS = 7 * 24
REQUEST_TIMEOUT = 5

DEFAULT_DESCRIPTION = "No description available."
DEFAULT_DEVELOPER = "Unknown Developer"

EDITION_SUFFIXES = ("edition", "remastered", "definitive", "goty", "complete")

STEAM_COVER_URL = "https://steamcdn-a.akamaihd.net/steam/apps/{appid}/library_600x900_2x.jpg"
STEAM_HERO_URL = "https://steamcdn-a.akamaihd.net/steam/apps/{appid}/library_hero.jpg"
STEAM_APP_DETAILS_URL = "https://store.steampowered.com/api/appdetails"

IGDB_BASE_URL = "https://api.igdb.com/v4"
TWITCH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"

USER_AGENT = "NexusLibrary/1.0"

DEFAULT_SETTINGS = {
    "scan": {
        "priority": list(DEFAULT_PRIORITY),
        "enabled_sources": list(DEFAULT_PRIORITY),
        "max_workers": 4,
        "metadata_workers": 4,
        "remove_missing": False,
        "cleanup_duplicates": True,
        "on_startup": False,
    },
    "paths": {
        "steam": None,
        "epic_manifests": None,
        "riot": [],
        "battlenet": [],
        "ea": [],
        "desktop_entries": [],
    },
    "metadata": {
        "cache_expiry_hours": CACHE_EXPIRY_HOURS,
        "similarity_threshold": SIMILARITY_THRESHOLD,
        "request_timeout": REQUEST_TIMEOUT,
    },
    "apis": {
        "igdb": {
            "client_id": "",
            "client_secret": "",
        },
    },
}
