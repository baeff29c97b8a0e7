"""
IGDB catalog client (authenticated through Twitch client credentials)
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from nexuslib.constants import IGDB_BASE_URL, REQUEST_TIMEOUT, TWITCH_TOKEN_URL, USER_AGENT
from nexuslib.exceptions import MetadataServiceException

logger = logging.getLogger("main")

GAME_FIELDS = (
    "name,summary,cover.url,first_release_date,"
    "involved_companies.company.name,involved_companies.developer"
)


def _image_url(url: Optional[str], size: str) -> Optional[str]:
    """IGDB returns protocol-relative t_thumb URLs; request a usable size"""
    if not url:
        return None
    if url.startswith("//"):
        url = "https:" + url
    return url.replace("t_thumb", size)


@dataclass
class CatalogGame:
    """One IGDB game record, reduced to what the catalog stores"""

    igdb_id: int
    name: str
    summary: Optional[str] = None
    cover_url: Optional[str] = None
    hero_url: Optional[str] = None
    developer: Optional[str] = None
    first_release_date: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogGame":
        cover = (data.get("cover") or {}).get("url")

        developer = None
        for company in data.get("involved_companies") or []:
            if company.get("developer"):
                developer = (company.get("company") or {}).get("name")
                if developer:
                    break

        return cls(
            igdb_id=int(data["id"]),
            name=data.get("name") or "",
            summary=data.get("summary") or None,
            cover_url=_image_url(cover, "t_cover_big"),
            hero_url=_image_url(cover, "t_1080p"),
            developer=developer,
            first_release_date=data.get("first_release_date"),
        )


class IGDBClient:
    """Client for IGDB API (via Twitch)"""

    _access_token = None
    _token_expiry = 0
    _token_lock = threading.Lock()

    def __init__(self, client_id: str, client_secret: str, timeout: float = REQUEST_TIMEOUT, session=None):
        self.client_id = client_id or ""
        self.client_secret = client_secret or ""
        self.timeout = timeout
        self.base_url = IGDB_BASE_URL
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @classmethod
    def reset_token(cls):
        with cls._token_lock:
            cls._access_token = None
            cls._token_expiry = 0

    def _get_access_token(self):
        """Get or refresh OAuth2 access token"""
        with IGDBClient._token_lock:
            now = time.time()
            if IGDBClient._access_token and IGDBClient._token_expiry > now + 60:
                return IGDBClient._access_token

            params = {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
            }
            try:
                response = self.session.post(TWITCH_TOKEN_URL, params=params, timeout=self.timeout)
                response.raise_for_status()
                data = response.json()
                IGDBClient._access_token = data["access_token"]
                IGDBClient._token_expiry = now + int(data.get("expires_in", 0))
            except (requests.RequestException, KeyError, ValueError) as e:
                raise MetadataServiceException(f"IGDB auth failed: {e}", service="igdb")
            return IGDBClient._access_token

    def _query(self, body: str):
        token = self._get_access_token()
        headers = {
            "Client-ID": self.client_id,
            "Authorization": f"Bearer {token}",
            "Content-Type": "text/plain",
        }
        try:
            response = self.session.post(f"{self.base_url}/games", headers=headers, data=body, timeout=self.timeout)
            response.raise_for_status()
            results = response.json()
        except (requests.RequestException, ValueError) as e:
            raise MetadataServiceException(f"IGDB request failed: {e}", service="igdb")
        if not isinstance(results, list):
            raise MetadataServiceException("IGDB returned an unexpected payload", service="igdb")
        return results

    def get_by_id(self, igdb_id: int) -> Optional[CatalogGame]:
        """Full record for a known IGDB id"""
        if not self.enabled:
            return None
        results = self._query(f"fields {GAME_FIELDS}; where id = {int(igdb_id)};")
        if not results:
            logger.debug(f"No IGDB game with id {igdb_id}")
            return None
        return CatalogGame.from_dict(results[0])

    def search(self, title: str) -> Optional[CatalogGame]:
        """
        Top search hit for `title`, restricted to main games, remakes,
        remasters, expanded games and ports. Only the first result is
        returned; confidence is judged by the caller.
        """
        if not self.enabled or not title:
            return None
        query = title.replace('"', "")
        results = self._query(
            f'search "{query}"; fields {GAME_FIELDS}; where category = (0,8,9,10,11); limit 1;'
        )
        if not results:
            logger.debug(f"No IGDB results for '{title}'")
            return None
        return CatalogGame.from_dict(results[0])
