"""
Typed rejections for game intents.

Every failed intent raises one of these. The first three are expected and
recoverable: they are reported only to the caller that issued the intent and
leave the game untouched. InvariantViolation means the engine itself is
broken and halts the session.
"""

from typing import Optional


class GameError(Exception):
    """
    Base class for all intent rejections.

    Attributes:
        code: Short machine-readable reason (e.g. "not_your_turn").
        message: Human-readable description for the client.
    """

    kind = "game_error"

    def __init__(self, code: str, message: Optional[str] = None) -> None:
        self.code = code
        self.message = message or code.replace("_", " ")
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert to the error payload sent to the issuing client."""
        return {
            "type": "error",
            "kind": self.kind,
            "code": self.code,
            "message": self.message,
        }


class InvalidIntent(GameError):
    """Wrong turn, empty hand, acting during someone else's burn, and so on."""

    kind = "invalid_intent"


class IllegalConfig(GameError):
    """Changing rules or seating once the game has started."""

    kind = "illegal_config"


class StaleIntent(GameError):
    """
    Intent was issued against state that changed before it was applied.

    Not retried: the caller must look at the newer snapshot and decide again.
    """

    kind = "stale_intent"


class InvariantViolation(GameError):
    """Card conservation or challenge bookkeeping broke. Fatal to the session."""

    kind = "invariant_violation"
