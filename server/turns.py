"""
Turn order and win detection.

TurnScheduler is a small value object owned by Game; it never looks at
cards. Players with empty hands keep their seat: there is no skip rule, the
game simply ends once one player holds every card still in hand.
"""

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence


class TurnScheduler:
    """
    Seating order and whose turn it is.

    Attributes:
        player_order: Player ids in seating order, fixed once the game starts.
        current_index: Index into player_order of the player to act.
    """

    def __init__(self, player_order: Optional[Sequence[str]] = None, current_index: int = 0) -> None:
        self.player_order: list[str] = list(player_order or [])
        self.current_index = current_index if self.player_order else 0

    def current(self) -> Optional[str]:
        """Get the id of the player whose turn it is."""
        if self.player_order:
            return self.player_order[self.current_index]
        return None

    def advance(self) -> str:
        """
        Pass the turn to the next seat, wrapping around.

        Returns:
            The id of the new current player.
        """
        self.current_index = (self.current_index + 1) % len(self.player_order)
        return self.player_order[self.current_index]

    def set_current(self, player_id: str) -> None:
        """
        Make a specific player current (slap winner, challenge recipient).

        Raises:
            ValueError: If the player is not seated.
        """
        self.current_index = self.player_order.index(player_id)

    def next_after(self, player_id: str) -> str:
        """Get the id seated immediately after `player_id`, wrapping around."""
        index = self.player_order.index(player_id)
        return self.player_order[(index + 1) % len(self.player_order)]

    def remove(self, player_id: str) -> None:
        """
        Remove a seat.

        The turn stays with the same player; if the current player leaves,
        it passes to whoever sat after them.
        """
        index = self.player_order.index(player_id)
        self.player_order.pop(index)
        if not self.player_order:
            self.current_index = 0
        elif index < self.current_index:
            self.current_index -= 1
        elif self.current_index >= len(self.player_order):
            self.current_index = 0

    def is_valid(self) -> bool:
        if not self.player_order:
            return self.current_index == 0
        return 0 <= self.current_index < len(self.player_order)


@dataclass(frozen=True)
class WinResult:
    """Outcome of a win check. Both fields empty means play goes on."""

    winner_id: Optional[str] = None
    is_draw: bool = False

    @property
    def decided(self) -> bool:
        return self.winner_id is not None or self.is_draw


def detect_winner(hand_sizes: Mapping[str, int]) -> WinResult:
    """
    Check whether the game is over.

    Args:
        hand_sizes: Cards in hand for every seated player.

    Returns:
        WinResult with the winner if exactly one player still holds cards,
        a draw if nobody does, otherwise an undecided result.
    """
    holding = [player_id for player_id, size in hand_sizes.items() if size > 0]
    if len(holding) == 1:
        return WinResult(winner_id=holding[0])
    if not holding:
        return WinResult(is_draw=True)
    return WinResult()
