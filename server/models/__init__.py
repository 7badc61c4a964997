"""Models package for the slap-card game."""

from .events import EventType, GameEvent
from .snapshot import GameSnapshot, LastSlap, PlayerView

__all__ = [
    "EventType",
    "GameEvent",
    "GameSnapshot",
    "LastSlap",
    "PlayerView",
]
