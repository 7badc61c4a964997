"""
Event definitions for the slap-card game.

Every applied intent emits one or more immutable events, enabling:
- An audit trail of every play, slap, burn and pile transfer
- "What just happened" notifications next to each snapshot
- Debugging a halted session from its event history

Events carry the game version they were produced under, so they line up
with the snapshots observers receive.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import json


class EventType(str, Enum):
    """All possible event types in a slap-card game."""

    # Lifecycle events
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"
    PLAYER_CONNECTION = "player_connection"
    RULES_CHANGED = "rules_changed"
    GAME_STARTED = "game_started"
    GAME_ENDED = "game_ended"
    GAME_RESET = "game_reset"

    # Gameplay events
    CARD_PLAYED = "card_played"
    CHALLENGE_STARTED = "challenge_started"
    CHALLENGE_MET = "challenge_met"
    CHALLENGE_FAILED = "challenge_failed"
    PILE_WON = "pile_won"
    SLAP_MISSED = "slap_missed"
    CARD_BURNED = "card_burned"
    PENALTY_TRANSFERRED = "penalty_transferred"


@dataclass
class GameEvent:
    """
    An immutable record of something that happened in a game.

    Attributes:
        event_type: The type of event (from EventType enum).
        game_id: UUID of the game this event belongs to.
        sequence_num: Monotonically increasing sequence number within game.
        version: Game version after the intent that produced this event.
        timestamp: When the event occurred (UTC).
        player_id: ID of player who triggered the event (if applicable).
        data: Event-specific payload data.
    """

    event_type: EventType
    game_id: str
    sequence_num: int
    version: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    player_id: Optional[str] = None
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Serialize event to dictionary for JSON storage."""
        return {
            "event_type": self.event_type.value,
            "game_id": self.game_id,
            "sequence_num": self.sequence_num,
            "version": self.version,
            "timestamp": self.timestamp.isoformat(),
            "player_id": self.player_id,
            "data": self.data,
        }

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, d: dict) -> "GameEvent":
        """Deserialize event from dictionary."""
        timestamp = d["timestamp"]
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)

        return cls(
            event_type=EventType(d["event_type"]),
            game_id=d["game_id"],
            sequence_num=d["sequence_num"],
            version=d["version"],
            timestamp=timestamp,
            player_id=d.get("player_id"),
            data=d.get("data", {}),
        )

    @classmethod
    def from_json(cls, json_str: str) -> "GameEvent":
        """Deserialize event from JSON string."""
        return cls.from_dict(json.loads(json_str))
