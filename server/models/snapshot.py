"""
Immutable game snapshots.

Game.snapshot() produces one of these after every applied intent. Observers
only ever read snapshots; all changes go back through the intent API.
"""

from dataclasses import dataclass, field
from typing import Optional

from cards import Card
from challenge import Challenge
from slap_rules import RuleSet


@dataclass(frozen=True)
class LastSlap:
    """Who slapped most recently, and whether it counted."""

    player_id: str
    valid: bool
    rules: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"player_id": self.player_id, "valid": self.valid, "rules": list(self.rules)}


@dataclass(frozen=True)
class PlayerView:
    """A player as seen in a snapshot."""

    id: str
    name: str
    hand: tuple[Card, ...] = ()
    connected: bool = True

    @property
    def hand_size(self) -> int:
        return len(self.hand)


@dataclass(frozen=True)
class GameSnapshot:
    """
    Canonical, read-only view of a game at one version.

    Attributes:
        version: Strictly increasing; one per applied intent.
        game_id: UUID of the current game.
        phase: "waiting", "playing" or "game_over".
        players: Every seated player, in seating order once started.
        player_order: Seating order of player ids.
        current_player_index: Index into player_order of the player to act.
        center_pile: Played cards, oldest first.
        burn_pile: Penalty cards, out of play.
        challenge: Face-card challenge slot.
        rules: Rules in force.
        burn_in_progress: An invalid slap is waiting to be burned.
        burn_offender_id: Who owes the burn.
        last_slap: Most recent slap, cleared by the next card play.
        winner_id: Set once the game is won.
        is_draw: Set if nobody holds any cards at the end.
        halted: The engine detected an internal inconsistency.
    """

    version: int
    game_id: str
    phase: str
    players: tuple[PlayerView, ...] = ()
    player_order: tuple[str, ...] = ()
    current_player_index: int = 0
    center_pile: tuple[Card, ...] = ()
    burn_pile: tuple[Card, ...] = ()
    challenge: Challenge = field(default_factory=Challenge.idle)
    rules: RuleSet = field(default_factory=RuleSet)
    burn_in_progress: bool = False
    burn_offender_id: Optional[str] = None
    last_slap: Optional[LastSlap] = None
    winner_id: Optional[str] = None
    is_draw: bool = False
    halted: bool = False

    @property
    def game_started(self) -> bool:
        return self.phase != "waiting"

    @property
    def current_player_id(self) -> Optional[str]:
        if self.player_order:
            return self.player_order[self.current_player_index]
        return None

    def player(self, player_id: str) -> Optional[PlayerView]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def hand_sizes(self) -> dict[str, int]:
        return {p.id: p.hand_size for p in self.players}

    def total_cards(self) -> int:
        """Cards in hands, center pile and burn pile combined."""
        return sum(self.hand_sizes().values()) + len(self.center_pile) + len(self.burn_pile)

    def to_dict(self, for_player_id: Optional[str] = None, reveal_hands: bool = False) -> dict:
        """
        Convert to a JSON-ready dict for one viewer.

        Hand sizes are always included. Hand contents are included for the
        viewer's own hand, or for everyone when reveal_hands is set.

        Args:
            for_player_id: The player who will receive this state (None for spectators).
            reveal_hands: Show every player's cards.
        """
        players_data = []
        for player in self.players:
            show = reveal_hands or player.id == for_player_id
            players_data.append({
                "id": player.id,
                "name": player.name,
                "hand_size": player.hand_size,
                "hand": [c.to_dict() for c in player.hand] if show else None,
                "connected": player.connected,
            })

        return {
            "version": self.version,
            "game_id": self.game_id,
            "phase": self.phase,
            "game_started": self.game_started,
            "players": players_data,
            "player_order": list(self.player_order),
            "current_player_index": self.current_player_index,
            "current_player_id": self.current_player_id,
            "center_pile": [c.to_dict() for c in self.center_pile],
            "burn_pile_size": len(self.burn_pile),
            "challenge": self.challenge.to_dict(),
            "rules": self.rules.to_dict(),
            "burn_in_progress": self.burn_in_progress,
            "burn_offender_id": self.burn_offender_id,
            "last_slap": self.last_slap.to_dict() if self.last_slap else None,
            "winner_id": self.winner_id,
            "is_draw": self.is_draw,
            "halted": self.halted,
        }
