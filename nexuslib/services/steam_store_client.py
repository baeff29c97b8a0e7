"""
Steam storefront: deterministic CDN art URLs and the public appdetails endpoint.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from nexuslib.constants import REQUEST_TIMEOUT, STEAM_APP_DETAILS_URL, STEAM_COVER_URL, STEAM_HERO_URL, USER_AGENT
from nexuslib.exceptions import MetadataServiceException

logger = logging.getLogger("main")


@dataclass
class SteamAppDetails:
    appid: str
    name: Optional[str] = None
    short_description: Optional[str] = None
    developer: Optional[str] = None


class SteamStoreClient:
    """Client for the Steam store API"""

    def __init__(self, timeout: float = REQUEST_TIMEOUT, session=None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

    @staticmethod
    def cover_url(appid) -> str:
        return STEAM_COVER_URL.format(appid=appid)

    @staticmethod
    def hero_url(appid) -> str:
        return STEAM_HERO_URL.format(appid=appid)

    def get_app_details(self, appid) -> Optional[SteamAppDetails]:
        """short_description and first developer, None when the store has no data"""
        appid = str(appid)
        try:
            response = self.session.get(
                STEAM_APP_DETAILS_URL,
                params={"appids": appid},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json() or {}
        except (requests.RequestException, ValueError) as e:
            raise MetadataServiceException(f"Steam appdetails failed for {appid}: {e}", service="steam")

        entry = payload.get(appid) or {}
        if not entry.get("success"):
            logger.debug(f"Steam store has no details for {appid}")
            return None

        data = entry.get("data") or {}
        developers = data.get("developers") or []
        return SteamAppDetails(
            appid=appid,
            name=data.get("name"),
            short_description=data.get("short_description") or None,
            developer=developers[0] if developers else None,
        )
