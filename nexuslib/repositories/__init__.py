"""
Repositories - the persisted catalog contract consumed by the scan pipeline
"""

from .game_repository import GameRepository
from .ignored_game_repository import IgnoredGameRepository

__all__ = [
    "GameRepository",
    "IgnoredGameRepository",
]
