"""
Source adapters - one per distribution mechanism
"""

from nexuslib.candidates import Mechanism

from .base import SourceAdapter
from .battlenet import BattleNetAdapter
from .ea import EAAdapter
from .epic import EpicAdapter
from .riot import RiotAdapter
from .standalone import StandaloneAdapter
from .steam import SteamAdapter

ADAPTERS = {
    Mechanism.STEAM: SteamAdapter,
    Mechanism.EPIC: EpicAdapter,
    Mechanism.RIOT: RiotAdapter,
    Mechanism.BATTLENET: BattleNetAdapter,
    Mechanism.EA: EAAdapter,
    Mechanism.STANDALONE: StandaloneAdapter,
}


def build_adapters(settings=None):
    """Instantiate the enabled adapters, keyed by mechanism"""
    settings = settings or {}
    enabled = (settings.get("scan", {}) or {}).get("enabled_sources")
    if enabled is None:
        enabled = [m.value for m in ADAPTERS]

    adapters = {}
    for name in enabled:
        mechanism = Mechanism.parse(name)
        if mechanism in ADAPTERS:
            adapters[mechanism] = ADAPTERS[mechanism](settings)
    return adapters


__all__ = [
    "ADAPTERS",
    "BattleNetAdapter",
    "EAAdapter",
    "EpicAdapter",
    "RiotAdapter",
    "SourceAdapter",
    "StandaloneAdapter",
    "SteamAdapter",
    "build_adapters",
]
