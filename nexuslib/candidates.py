from __future__ import annotations
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, Dict, Any

from nexuslib import constants
from nexuslib.titles import canonical_key, normalize_title, sanitize_identifier


class Mechanism(str, Enum):
    STEAM = constants.MECHANISM_STEAM
    EPIC = constants.MECHANISM_EPIC
    RIOT = constants.MECHANISM_RIOT
    BATTLENET = constants.MECHANISM_BATTLENET
    EA = constants.MECHANISM_EA
    STANDALONE = constants.MECHANISM_STANDALONE

    @classmethod
    def parse(cls, value) -> Optional["Mechanism"]:
        """Accept a Mechanism, its value or its name; None for unknown input"""
        if value is None or isinstance(value, cls):
            return value
        lowered = str(value).strip().lower()
        for member in cls:
            if member.value == lowered or member.name.lower() == lowered:
                return member
        return None


class GameStatus(str, Enum):
    READY = constants.STATUS_READY
    MISSING = constants.STATUS_MISSING


@dataclass
class MetadataRecord:
    """Descriptive metadata produced by the resolver"""

    cover_url: Optional[str] = None
    hero_url: Optional[str] = None
    description: Optional[str] = None
    developer: Optional[str] = None
    source: str = "default"

    def is_empty(self) -> bool:
        return not (self.cover_url or self.hero_url or self.description or self.developer)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CandidateGame:
    """A title discovered in one scan pass, before persistence"""

    title: str
    mechanism: Mechanism
    app_id: Optional[str] = None
    install_path: Optional[str] = None
    executable_path: Optional[str] = None
    status: GameStatus = GameStatus.MISSING
    cover_url: Optional[str] = None
    hero_url: Optional[str] = None
    description: Optional[str] = None
    developer: Optional[str] = None
    metadata_source: Optional[str] = field(default=None, compare=False)

    @property
    def canonical_key(self) -> str:
        return canonical_key(self.mechanism, self.app_id, self.title)

    @property
    def normalized_title(self) -> str:
        return normalize_title(self.title)

    @property
    def cache_key(self) -> str:
        """Metadata cache key: mechanism identifier when present, else normalized title"""
        if self.app_id and sanitize_identifier(self.app_id):
            return f"{self.mechanism.value}_{sanitize_identifier(self.app_id)}"
        return f"title_{self.normalized_title}"

    @property
    def is_ready(self) -> bool:
        return self.status == GameStatus.READY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "mechanism": self.mechanism.value,
            "app_id": self.app_id,
            "install_path": self.install_path,
            "executable_path": self.executable_path,
            "status": self.status.value,
            "canonical_key": self.canonical_key,
            "normalized_title": self.normalized_title,
            "cover_url": self.cover_url,
            "hero_url": self.hero_url,
            "description": self.description,
            "developer": self.developer,
        }
