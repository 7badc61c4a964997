"""
Session coordination for a multiplayer slap-card game.

A GameSession owns the one Game of a table and is the only way to change
it. Player intents may arrive concurrently (one connection per player),
but they are applied strictly one at a time:

    - Every intent takes `game_lock` (asyncio locks wake waiters in FIFO
      order, so admission order is application order)
    - The Game validates against its current state, then mutates
    - The new snapshot is pushed to every subscriber queue before the lock
      is released, so all observers see the same versions in the same order

Two players slapping the same pile at once is therefore decided by who got
the lock first: the second slap finds the pile already taken and is
rejected as stale.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from cards import Card
from config import ServerConfig
from constants import EVENT_HISTORY_VERSIONS, MIN_PLAYERS
from errors import GameError, InvariantViolation
from game import Game, SlapResult
from logging_config import ContextLogger, get_logger
from models.events import EventType, GameEvent
from models.snapshot import GameSnapshot
from slap_rules import RuleSet


@dataclass
class GameSession:
    """
    The single-writer coordinator around a Game.

    Attributes:
        session_id: Short identifier used in logs.
        game: The authoritative game state.
        auto_start: Deal as soon as a join brings the table to two players.
        game_lock: Serializes every intent on this session.
        events: Events of the current game, oldest first.
    """

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    game: Game = field(default_factory=Game)
    auto_start: bool = False
    game_lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    events: list[GameEvent] = field(default_factory=list)
    _events_by_version: dict[int, list[GameEvent]] = field(default_factory=dict, repr=False)
    _subscribers: list[asyncio.Queue] = field(default_factory=list, repr=False)
    _latest: Optional[GameSnapshot] = field(default=None, repr=False)
    log: ContextLogger = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.game.set_event_emitter(self._record_event)
        self._latest = self.game.snapshot()
        self.log = get_logger(__name__).with_context(session_id=self.session_id)

    @classmethod
    def from_config(cls, cfg: ServerConfig) -> "GameSession":
        """Create a session with the configured rules, seat limit and seed."""
        game = Game(
            rules=cfg.rule_defaults.to_rule_set(),
            max_players=cfg.MAX_PLAYERS_PER_SESSION,
            shuffle_seating=cfg.SHUFFLE_SEATING,
            seed=cfg.SHUFFLE_SEED,
        )
        return cls(game=game, auto_start=cfg.AUTO_START)

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    @property
    def latest(self) -> GameSnapshot:
        """The most recently published snapshot."""
        return self._latest

    def subscribe(self) -> asyncio.Queue:
        """
        Register an observer.

        Returns:
            A queue that immediately holds the latest snapshot and then
            receives every new one, in version order.
        """
        queue: asyncio.Queue = asyncio.Queue()
        queue.put_nowait(self._latest)
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def events_for_version(self, version: int) -> list[GameEvent]:
        """Events produced by the intent that created `version`."""
        return list(self._events_by_version.get(version, ()))

    def _record_event(self, event: GameEvent) -> None:
        if event.event_type == EventType.GAME_RESET:
            self.events = []
        self.events.append(event)
        self._events_by_version.setdefault(event.version, []).append(event)
        while len(self._events_by_version) > EVENT_HISTORY_VERSIONS:
            del self._events_by_version[next(iter(self._events_by_version))]
        self.log.debug(
            f"Event {event.event_type.value}",
            extra={"version": event.version, "player_id": event.player_id},
        )

    def _publish(self, snapshot: GameSnapshot) -> None:
        self._latest = snapshot
        for queue in self._subscribers:
            queue.put_nowait(snapshot)

    # -------------------------------------------------------------------------
    # Intent application
    # -------------------------------------------------------------------------

    def _run(self, intent: str, fn: Callable[..., Any], *args: Any) -> Any:
        """Apply one intent. Must be called with game_lock held."""
        try:
            result = fn(*args)
        except InvariantViolation as e:
            self.log.error(
                f"Intent {intent} hit an invariant violation: {e.code}",
                extra={"intent": intent, "version": self.game.version},
            )
            snapshot = self.game.snapshot()
            if (
                snapshot.version > self._latest.version
                or snapshot.halted != self._latest.halted
            ):
                self._publish(snapshot)
            raise
        except GameError as e:
            self.log.info(
                f"Rejected {intent}: {e.code}",
                extra={"intent": intent, "version": self.game.version},
            )
            raise

        self._publish(self.game.snapshot())
        return result

    async def _apply(self, intent: str, fn: Callable[..., Any], *args: Any) -> Any:
        async with self.game_lock:
            return self._run(intent, fn, *args)

    # -------------------------------------------------------------------------
    # Intent API
    # -------------------------------------------------------------------------

    async def join(self, name: str) -> str:
        """
        Seat a player and return their id.

        With auto_start on, the join that brings the table to two players
        is followed by the deal, as a separate version.
        """
        async with self.game_lock:
            player_id = self._run("join", self.game.join, name)
            if (
                self.auto_start
                and not self.game.game_started
                and len(self.game.players) >= MIN_PLAYERS
            ):
                self._run("start_game", self.game.start_game)
            return player_id

    async def set_rules(self, rules: RuleSet) -> None:
        await self._apply("set_rules", self.game.set_rules, rules)

    async def start_game(self) -> None:
        await self._apply("start_game", self.game.start_game)

    async def play_card(self, player_id: str, observed_version: Optional[int] = None) -> Card:
        return await self._apply("play_card", self.game.play_card, player_id, observed_version)

    async def slap(self, player_id: str, observed_version: Optional[int] = None) -> SlapResult:
        return await self._apply("slap", self.game.slap, player_id, observed_version)

    async def burn(self, player_id: str) -> Card:
        return await self._apply("burn", self.game.burn, player_id)

    async def play_again(self) -> None:
        await self._apply("play_again", self.game.play_again)

    async def leave(self, player_id: str, reason: str = "left") -> None:
        """Synthetic intent queued by the transport when a player is gone for good."""
        await self._apply("leave", self.game.leave, player_id, reason)

    async def set_connected(self, player_id: str, connected: bool) -> None:
        await self._apply("set_connected", self.game.set_connected, player_id, connected)
