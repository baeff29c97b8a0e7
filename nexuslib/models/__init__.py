"""
Models package

- game.py: persisted catalog entries
- ignored_game.py: user suppression list
"""

from .game import Game
from .ignored_game import IgnoredGame

__all__ = [
    "Game",
    "IgnoredGame",
]
