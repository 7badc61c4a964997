"""
Game logic for the slap-card game (an Egyptian Rat Screw variant).

This module holds the authoritative game state and applies player intents
to it, one at a time. Everything else (deck handling, slap rules, the
face-card challenge, turn order, win detection) lives in small pure modules
that Game consults.

Slap Game Rules Summary:
    - The whole deck is dealt out; players keep their hand face-down
    - On your turn: play the top card of your hand onto the center pile
    - Anyone may slap the pile when it shows an enabled pattern
      (doubles, sandwich, marriage, top/bottom, adds to 10, runs)
    - A good slap wins the pile; a bad slap costs a card
    - A face card (J/Q/K/A) challenges the next player to answer with a
      face card within 1/2/3/4 cards, or the pile goes to the seat after
      the challenger
    - The last player holding cards wins

Every intent method validates completely before touching state. A failed
intent raises a GameError subclass and leaves the game unchanged; a
successful one bumps `version` exactly once.
"""

import logging
import random
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Callable, Any

from cards import Card, build_deck, deal, shuffle_deck
from challenge import Challenge, ChallengeOutcome, play_into_challenge
from constants import DECK_SIZE, DEFAULT_MAX_PLAYERS, MIN_PLAYERS
from errors import IllegalConfig, InvalidIntent, InvariantViolation, StaleIntent
from models.events import EventType, GameEvent
from models.snapshot import GameSnapshot, LastSlap, PlayerView
from slap_rules import PenaltyPolicy, RuleSet, matching_rules
from turns import TurnScheduler, detect_winner

logger = logging.getLogger(__name__)


class GamePhase(Enum):
    """
    Phases of a game.

    Flow: WAITING -> PLAYING -> GAME_OVER, and back to WAITING on play again.
    """

    WAITING = "waiting"      # Lobby, players joining, rules editable
    PLAYING = "playing"      # Cards dealt, taking turns and slapping
    GAME_OVER = "game_over"  # One player holds every card left in hand


@dataclass
class Player:
    """
    A player in the slap-card game.

    Attributes:
        id: Unique identifier, assigned at join.
        name: Display name.
        hand: Face-down cards; the top card is the last element.
        connected: Whether the transport currently sees this player.
    """

    id: str
    name: str
    hand: list[Card] = field(default_factory=list)
    connected: bool = True


@dataclass(frozen=True)
class SlapResult:
    """Outcome of a slap: whether it won the pile and which rules matched."""

    valid: bool
    rules: tuple[str, ...] = ()


@dataclass
class Game:
    """
    Main game state and the only place it is changed.

    Attributes:
        players: Seated players, in seating order.
        rules: Slap rules and penalty policy in force.
        phase: Current game phase.
        turns: Seating order and current player (filled at game start).
        center_pile: Played cards, oldest first.
        burn_pile: Penalty and forfeited cards, out of play for good.
        challenge: The single face-card challenge slot.
        burn_in_progress: A bad slap is waiting for its burn.
        burn_offender_id: Who owes the burn.
        last_slap: Most recent slap, cleared by the next card play.
        winner_id: Winner once the game is over.
        is_draw: True if the game ended with nobody holding cards.
        version: Bumped once per applied intent.
        pile_version: Version at which the center pile last changed hands.
        pile_taken: The pile is empty because someone just won it; cleared
            by the next card play.
        turn_version: Version at which the current player last changed.
        halted: Set when an invariant check fails; no intent is accepted after.
        max_players: Seat limit.
        shuffle_seating: Shuffle the seating order at every deal.
        seed: Random seed for shuffles and penalty targets (None = random).
        game_id: Unique identifier of the current game.
    """

    players: list[Player] = field(default_factory=list)
    rules: RuleSet = field(default_factory=RuleSet)
    phase: GamePhase = GamePhase.WAITING
    turns: TurnScheduler = field(default_factory=TurnScheduler)
    center_pile: list[Card] = field(default_factory=list)
    burn_pile: list[Card] = field(default_factory=list)
    challenge: Challenge = field(default_factory=Challenge.idle)
    burn_in_progress: bool = False
    burn_offender_id: Optional[str] = None
    last_slap: Optional[LastSlap] = None
    winner_id: Optional[str] = None
    is_draw: bool = False
    version: int = 0
    pile_version: int = 0
    pile_taken: bool = False
    turn_version: int = 0
    halted: bool = False
    max_players: int = DEFAULT_MAX_PLAYERS
    shuffle_seating: bool = False
    seed: Optional[int] = None

    game_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    rng: random.Random = field(default=None, repr=False, compare=False)
    _event_emitter: Optional[Callable[[GameEvent], None]] = field(
        default=None, repr=False, compare=False
    )
    _sequence_num: int = field(default=0, repr=False, compare=False)
    _pending_events: list = field(default_factory=list, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.rng is None:
            self.rng = random.Random(self.seed)

    def set_event_emitter(self, emitter: Callable[[GameEvent], None]) -> None:
        """
        Set callback for event emission.

        The emitter is called with each GameEvent after the intent that
        produced it has been applied and checked.
        """
        self._event_emitter = emitter

    def _emit(self, event_type: EventType, player_id: Optional[str] = None, **data: Any) -> None:
        """Queue an event; it is stamped and delivered when the intent commits."""
        self._pending_events.append((event_type, player_id, data))

    def _flush_events(self) -> None:
        pending, self._pending_events = self._pending_events, []
        if self._event_emitter is None:
            return
        for event_type, player_id, data in pending:
            self._sequence_num += 1
            self._event_emitter(GameEvent(
                event_type=event_type,
                game_id=self.game_id,
                sequence_num=self._sequence_num,
                version=self.version,
                player_id=player_id,
                data=data,
            ))

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @property
    def game_started(self) -> bool:
        return self.phase != GamePhase.WAITING

    def get_player(self, player_id: str) -> Optional[Player]:
        """Find a seated player by id, or None."""
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def hand_sizes(self) -> dict[str, int]:
        return {p.id: len(p.hand) for p in self.players}

    # -------------------------------------------------------------------------
    # Validation helpers
    # -------------------------------------------------------------------------

    def _require_live(self) -> None:
        if self.halted:
            raise InvariantViolation("session_halted", "Game halted after an internal error")

    def _require_player(self, player_id: str) -> Player:
        player = self.get_player(player_id)
        if player is None:
            raise InvalidIntent("unknown_player", f"No player {player_id} in this game")
        return player

    def _require_playing(self) -> None:
        if self.phase == GamePhase.WAITING:
            raise InvalidIntent("game_not_started", "The game has not started")
        if self.phase == GamePhase.GAME_OVER:
            raise InvalidIntent("game_over", "The game is over; play again to continue")

    # -------------------------------------------------------------------------
    # Lobby
    # -------------------------------------------------------------------------

    def join(self, name: str) -> str:
        """
        Seat a new player.

        Args:
            name: Display name.

        Returns:
            The new player's id.

        Raises:
            InvalidIntent: Blank name.
            IllegalConfig: Game already started, or every seat is taken.
        """
        self._require_live()
        name = (name or "").strip()
        if not name:
            raise InvalidIntent("empty_name", "Player name is required")
        if self.game_started:
            raise IllegalConfig("game_already_started", "Cannot join a game in progress")
        if len(self.players) >= self.max_players:
            raise IllegalConfig("session_full", f"Game is full ({self.max_players} players)")

        player = Player(id=uuid.uuid4().hex, name=name)
        self.players.append(player)
        self._emit(EventType.PLAYER_JOINED, player_id=player.id, player_name=name)
        self._commit()
        logger.info(f"Player {name} joined as {player.id}")
        return player.id

    def set_rules(self, rules: RuleSet) -> None:
        """
        Replace the rule set. Only allowed before the game starts.

        Raises:
            IllegalConfig: If the game has started.
        """
        self._require_live()
        if self.game_started:
            raise IllegalConfig("game_already_started", "Rules are locked once the game starts")

        self.rules = replace(rules)
        self._emit(EventType.RULES_CHANGED, rules=self.rules.to_dict())
        self._commit()

    def start_game(self) -> None:
        """
        Shuffle, deal the whole deck and start play with the first seat.

        Raises:
            IllegalConfig: Already started, or fewer than two players.
        """
        self._require_live()
        if self.game_started:
            raise IllegalConfig("game_already_started", "The game has already started")
        if len(self.players) < MIN_PLAYERS:
            raise IllegalConfig("not_enough_players", f"Need at least {MIN_PLAYERS} players")

        self._deal()
        self._commit(turn_changed=True, pile_changed=True)

    def _deal(self) -> None:
        player_order = [p.id for p in self.players]
        if self.shuffle_seating:
            self.rng.shuffle(player_order)
        deck = shuffle_deck(build_deck(), self.rng)
        hands = deal(deck, player_order)
        for player in self.players:
            player.hand = hands[player.id]

        self.turns = TurnScheduler(player_order)
        self.center_pile = []
        self.pile_taken = False
        self.burn_pile = []
        self.challenge = Challenge.idle()
        self.phase = GamePhase.PLAYING

        self._emit(
            EventType.GAME_STARTED,
            player_order=player_order,
            hand_sizes=self.hand_sizes(),
            rules=self.rules.to_dict(),
        )
        logger.info(f"Game {self.game_id} started with {len(player_order)} players")

    def play_again(self) -> None:
        """
        Reset to the pre-deal shape, keeping players and rules.

        Deals a fresh game straight away if at least two players remain.
        Calling it twice in a row gives the same shape both times.

        Raises:
            InvalidIntent: If nobody is seated.
        """
        self._require_live()
        if not self.players:
            raise InvalidIntent("no_players", "Nobody is seated")

        self._reset_table()
        self._emit(EventType.GAME_RESET, player_ids=[p.id for p in self.players])
        if len(self.players) >= MIN_PLAYERS:
            self._deal()
        self._commit(turn_changed=True, pile_changed=True)

    def _reset_table(self) -> None:
        for player in self.players:
            player.hand = []
        self.phase = GamePhase.WAITING
        self.turns = TurnScheduler()
        self.center_pile = []
        self.pile_taken = False
        self.burn_pile = []
        self.challenge = Challenge.idle()
        self.burn_in_progress = False
        self.burn_offender_id = None
        self.last_slap = None
        self.winner_id = None
        self.is_draw = False
        self.game_id = str(uuid.uuid4())
        self._sequence_num = 0

    def leave(self, player_id: str, reason: str = "left") -> None:
        """
        Remove a player for good (left or irrecoverably disconnected).

        Mid-game, their hand is forfeited to the burn pile, a burn they owe
        is dropped, a challenge they started is called off, and if it was
        their turn it passes to the next seat.
        """
        self._require_live()
        player = self._require_player(player_id)

        self.players.remove(player)
        turn_changed = False
        if self.game_started:
            self.burn_pile.extend(player.hand)
            player.hand = []
            if self.burn_offender_id == player_id:
                self.burn_in_progress = False
                self.burn_offender_id = None
            if self.challenge.active and self.challenge.initiating_player_id == player_id:
                self.challenge = Challenge.idle()
            turn_changed = self.turns.current() == player_id
            self.turns.remove(player_id)

        self._emit(EventType.PLAYER_LEFT, player_id=player_id, reason=reason)
        if not self.players:
            # Empty table: back to a fresh lobby rather than a dead game
            self._reset_table()
        self._commit(turn_changed=turn_changed)
        logger.info(f"Player {player.name} ({player_id}) left: {reason}")

    def set_connected(self, player_id: str, connected: bool) -> None:
        """Record what the transport sees of a player's connection."""
        self._require_live()
        player = self._require_player(player_id)
        player.connected = connected
        self._emit(EventType.PLAYER_CONNECTION, player_id=player_id, connected=connected)
        self._commit()

    # -------------------------------------------------------------------------
    # Turn Actions
    # -------------------------------------------------------------------------

    def play_card(self, player_id: str, observed_version: Optional[int] = None) -> Card:
        """
        Play the top card of a hand onto the center pile.

        Feeds the card into the face-card challenge. If that uses up the
        last attempt, the pile goes to the seat after the challenger and
        they become current; otherwise the turn moves to the next seat.

        Args:
            player_id: ID of the player playing.
            observed_version: Version the caller was looking at, if known.

        Returns:
            The card played.

        Raises:
            InvalidIntent: Game not running, not their turn, empty hand or a
                burn pending.
            StaleIntent: It was their turn at observed_version but no longer.
        """
        self._require_live()
        self._require_playing()
        player = self._require_player(player_id)

        if self.burn_in_progress:
            raise InvalidIntent("burn_in_progress", "Waiting for a burn")
        if self.turns.current() != player_id:
            if observed_version is not None and observed_version < self.turn_version:
                raise StaleIntent("turn_moved", "The turn moved on before this play arrived")
            raise InvalidIntent("not_your_turn", "It is not your turn")
        if not player.hand:
            raise InvalidIntent("empty_hand", "You have no cards to play")

        card = player.hand[-1]
        initiator_id = self.challenge.initiating_player_id
        try:
            step = play_into_challenge(self.challenge, card, player_id, self.rules.face_cards)
        except InvariantViolation as e:
            self._halt(e)

        player.hand.pop()
        self.center_pile.append(card)
        self.pile_taken = False
        self.last_slap = None
        self.challenge = step.challenge
        self._emit(EventType.CARD_PLAYED, player_id=player_id, card=card.to_dict())

        if step.outcome == ChallengeOutcome.STARTED:
            self._emit(
                EventType.CHALLENGE_STARTED,
                player_id=player_id,
                card=card.to_dict(),
                attempts_left=step.challenge.attempts_left,
            )
        elif step.outcome == ChallengeOutcome.MET:
            self._emit(EventType.CHALLENGE_MET, player_id=player_id, card=card.to_dict())
        elif step.outcome == ChallengeOutcome.FAILED:
            recipient_id = self.turns.next_after(initiator_id)
            pile_size = len(self.center_pile)
            self._transfer_pile(recipient_id)
            self._emit(
                EventType.CHALLENGE_FAILED,
                player_id=recipient_id,
                initiator_id=initiator_id,
                cards_won=pile_size,
            )
            self._commit(turn_changed=True, pile_changed=True)
            return card

        self.turns.advance()
        self._commit(turn_changed=True)
        return card

    def slap(self, player_id: str, observed_version: Optional[int] = None) -> SlapResult:
        """
        Slap the center pile.

        Judged against the pile as it is now, not as the caller saw it. A
        match wins the pile and the turn; a miss costs a card under the
        game's penalty policy.

        Args:
            player_id: ID of the player slapping.
            observed_version: Version the caller was looking at, if known.

        Returns:
            SlapResult with validity and the matching rule names.

        Raises:
            InvalidIntent: Game not running, empty pile, challenge active or
                burn pending.
            StaleIntent: The pile the caller saw has already been taken.
        """
        self._require_live()
        self._require_playing()
        player = self._require_player(player_id)

        if self.burn_in_progress:
            raise InvalidIntent("burn_in_progress", "Waiting for a burn")
        if self.challenge.active:
            raise InvalidIntent("challenge_active", "No slapping during a face-card challenge")
        if observed_version is not None and observed_version < self.pile_version:
            raise StaleIntent("pile_already_taken", "Someone else already took that pile")
        if not self.center_pile:
            if self.pile_taken:
                raise StaleIntent("pile_already_taken", "Someone else already took that pile")
            raise InvalidIntent("empty_pile", "There is nothing to slap")

        matched = tuple(matching_rules(self.center_pile, self.rules))
        self.last_slap = LastSlap(player_id=player_id, valid=bool(matched), rules=matched)

        if matched:
            pile_size = len(self.center_pile)
            self._transfer_pile(player_id)
            self._emit(EventType.PILE_WON, player_id=player_id, rules=list(matched), cards_won=pile_size)
            self._commit(turn_changed=True, pile_changed=True)
            logger.debug(f"{player.name} won {pile_size} cards with {', '.join(matched)}")
            return SlapResult(valid=True, rules=matched)

        self._emit(EventType.SLAP_MISSED, player_id=player_id)
        self._apply_slap_penalty(player)
        self._commit()
        return SlapResult(valid=False)

    def _apply_slap_penalty(self, player: Player) -> None:
        if not player.hand:
            return

        if self.rules.penalty_policy == PenaltyPolicy.RANDOM_TRANSFER.value:
            others = [p for p in self.players if p.id != player.id]
            if not others:
                return
            target = self.rng.choice(others)
            card = player.hand.pop()
            target.hand.append(card)
            self._emit(
                EventType.PENALTY_TRANSFERRED,
                player_id=player.id,
                to_player_id=target.id,
                card=card.to_dict(),
            )
            return

        self.burn_in_progress = True
        self.burn_offender_id = player.id

    def burn(self, player_id: str) -> Card:
        """
        Burn the top card of the offender's hand after a bad slap.

        Returns:
            The burned card.

        Raises:
            InvalidIntent: No burn pending, or someone other than the
                offender tried to burn.
        """
        self._require_live()
        self._require_playing()
        player = self._require_player(player_id)

        if not self.burn_in_progress:
            raise InvalidIntent("no_burn_pending", "Nothing to burn")
        if player_id != self.burn_offender_id:
            raise InvalidIntent("not_burn_offender", "Only the player who slapped wrong burns")
        if not player.hand:
            raise InvalidIntent("empty_hand", "You have no cards to burn")

        card = player.hand.pop()
        self.burn_pile.append(card)
        self.burn_in_progress = False
        self.burn_offender_id = None
        self._emit(EventType.CARD_BURNED, player_id=player_id, card=card.to_dict())
        self._commit()
        return card

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _transfer_pile(self, player_id: str) -> None:
        """Give the whole center pile to a player, reshuffle their hand, and make them current."""
        player = self.get_player(player_id)
        player.hand = shuffle_deck(player.hand + self.center_pile, self.rng)
        self.center_pile = []
        self.pile_taken = True
        self.challenge = Challenge.idle()
        self.turns.set_current(player_id)

    def _commit(self, turn_changed: bool = False, pile_changed: bool = False) -> None:
        """Finish an applied intent: bump the version, check for a winner, verify, emit."""
        self.version += 1
        if turn_changed:
            self.turn_version = self.version
        if pile_changed:
            self.pile_version = self.version

        self._check_winner()
        self._check_invariants()
        self._flush_events()

    def _check_winner(self) -> None:
        if self.phase != GamePhase.PLAYING:
            return

        result = detect_winner(self.hand_sizes())
        if not result.decided:
            return

        self.phase = GamePhase.GAME_OVER
        self.winner_id = result.winner_id
        self.is_draw = result.is_draw
        self._emit(EventType.GAME_ENDED, player_id=result.winner_id, is_draw=result.is_draw)
        if result.winner_id:
            logger.info(f"Game {self.game_id} won by {result.winner_id}")
        else:
            logger.warning(f"Game {self.game_id} ended in a draw")

    def _check_invariants(self) -> None:
        """
        Verify the state after an intent.

        Raises:
            InvariantViolation: Card count, duplicate card, turn index or
                challenge bookkeeping is wrong. The game is halted first.
        """
        if not self.turns.is_valid():
            self._halt(InvariantViolation(
                "bad_turn_index",
                f"Turn index {self.turns.current_index} outside {len(self.turns.player_order)} seats",
            ))
        if self.challenge.active and self.challenge.attempts_left < 0:
            self._halt(InvariantViolation(
                "negative_attempts",
                f"Challenge has {self.challenge.attempts_left} attempts left",
            ))
        if self.game_started:
            cards = [c for p in self.players for c in p.hand] + self.center_pile + self.burn_pile
            if len(cards) != DECK_SIZE:
                self._halt(InvariantViolation(
                    "card_count_mismatch",
                    f"{len(cards)} cards in play, expected {DECK_SIZE}",
                ))
            if len(set(cards)) != len(cards):
                self._halt(InvariantViolation("duplicate_card", "The same card is in play twice"))

    def _halt(self, error: InvariantViolation) -> None:
        self.halted = True
        self._pending_events = []
        logger.critical(
            f"Game {self.game_id} halted at version {self.version}: {error.code} ({error.message})",
            extra={"game_id": self.game_id},
        )
        raise error

    # -------------------------------------------------------------------------
    # State Queries
    # -------------------------------------------------------------------------

    def snapshot(self) -> GameSnapshot:
        """Get an immutable view of the whole game at the current version."""
        return GameSnapshot(
            version=self.version,
            game_id=self.game_id,
            phase=self.phase.value,
            players=tuple(
                PlayerView(id=p.id, name=p.name, hand=tuple(p.hand), connected=p.connected)
                for p in self.players
            ),
            player_order=tuple(self.turns.player_order),
            current_player_index=self.turns.current_index,
            center_pile=tuple(self.center_pile),
            burn_pile=tuple(self.burn_pile),
            challenge=self.challenge,
            rules=replace(self.rules),
            burn_in_progress=self.burn_in_progress,
            burn_offender_id=self.burn_offender_id,
            last_slap=self.last_slap,
            winner_id=self.winner_id,
            is_draw=self.is_draw,
            halted=self.halted,
        )
