"""WebSocket message handlers for the slap-card game.

Each handler corresponds to a single message type from the client and
turns it into one session intent. Handlers are dispatched via the HANDLERS
dict in main.py.

Handlers never touch game state directly. A rejected intent is answered to
the sending connection only; successful intents reach everyone through the
snapshot stream (see forward_snapshots).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import WebSocket
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from errors import GameError
from session import GameSession
from slap_rules import PenaltyPolicy, RuleSet

logger = logging.getLogger(__name__)


@dataclass
class ConnectionContext:
    """State tracked per WebSocket connection."""

    websocket: WebSocket
    connection_id: str
    player_id: Optional[str] = None
    # Version of the last snapshot sent to this connection
    last_seen_version: Optional[int] = None


# ---------------------------------------------------------------------------
# Message payloads
# ---------------------------------------------------------------------------

class JoinMessage(BaseModel):
    player_name: str = Field(min_length=1, max_length=32)


class IntentMessage(BaseModel):
    """Play, slap and burn carry the version the client was looking at."""

    observed_version: Optional[int] = Field(default=None, ge=0)


class RulesMessage(BaseModel):
    """Rule toggles; accepts the client's camelCase names too."""

    model_config = ConfigDict(populate_by_name=True)

    doubles: Optional[bool] = None
    sandwich: Optional[bool] = None
    marriage: Optional[bool] = None
    top_bottom: Optional[bool] = Field(default=None, alias="topBottom")
    adds_to_10: Optional[bool] = Field(default=None, alias="addsTo10")
    runs: Optional[bool] = None
    face_cards: Optional[bool] = Field(default=None, alias="faceCards")
    penalty_policy: Optional[PenaltyPolicy] = Field(default=None, alias="penaltyPolicy")


async def send_error(ctx: ConnectionContext, error: GameError) -> None:
    await ctx.websocket.send_json(error.to_dict())


async def send_bad_message(ctx: ConnectionContext, exc: ValidationError) -> None:
    await ctx.websocket.send_json({
        "type": "error",
        "kind": "invalid_intent",
        "code": "bad_message",
        "message": str(exc.errors()[0].get("msg", "Invalid message")),
    })


async def _require_joined(ctx: ConnectionContext) -> bool:
    if ctx.player_id:
        return True
    await ctx.websocket.send_json({
        "type": "error",
        "kind": "invalid_intent",
        "code": "not_joined",
        "message": "Join the game first",
    })
    return False


# ---------------------------------------------------------------------------
# Lobby handlers
# ---------------------------------------------------------------------------

async def handle_join(data: dict, ctx: ConnectionContext, *, session: GameSession, **kw) -> None:
    if ctx.player_id:
        await ctx.websocket.send_json({
            "type": "error",
            "kind": "invalid_intent",
            "code": "already_joined",
            "message": "This connection already has a seat",
        })
        return

    try:
        msg = JoinMessage.model_validate(data)
    except ValidationError as e:
        await send_bad_message(ctx, e)
        return

    try:
        ctx.player_id = await session.join(msg.player_name)
    except GameError as e:
        await send_error(ctx, e)
        return

    logger.debug(f"Connection {ctx.connection_id} seated as {ctx.player_id}")
    await ctx.websocket.send_json({
        "type": "joined",
        "player_id": ctx.player_id,
        "session_id": session.session_id,
    })


async def handle_set_rules(data: dict, ctx: ConnectionContext, *, session: GameSession, **kw) -> None:
    if not await _require_joined(ctx):
        return

    try:
        msg = RulesMessage.model_validate(data.get("rules", {}))
    except ValidationError as e:
        await send_bad_message(ctx, e)
        return

    rules = RuleSet.from_client_data(
        msg.model_dump(mode="json", exclude_none=True),
        base=session.latest.rules,
    )
    try:
        await session.set_rules(rules)
    except GameError as e:
        await send_error(ctx, e)


async def handle_start_game(data: dict, ctx: ConnectionContext, *, session: GameSession, **kw) -> None:
    if not await _require_joined(ctx):
        return

    try:
        await session.start_game()
    except GameError as e:
        await send_error(ctx, e)


async def handle_play_again(data: dict, ctx: ConnectionContext, *, session: GameSession, **kw) -> None:
    if not await _require_joined(ctx):
        return

    try:
        await session.play_again()
    except GameError as e:
        await send_error(ctx, e)


async def handle_leave(data: dict, ctx: ConnectionContext, *, session: GameSession, **kw) -> None:
    if not await _require_joined(ctx):
        return

    try:
        await session.leave(ctx.player_id, "left")
    except GameError as e:
        await send_error(ctx, e)
        return
    ctx.player_id = None


# ---------------------------------------------------------------------------
# Turn action handlers
# ---------------------------------------------------------------------------

async def handle_play_card(data: dict, ctx: ConnectionContext, *, session: GameSession, **kw) -> None:
    if not await _require_joined(ctx):
        return

    try:
        msg = IntentMessage.model_validate(data)
    except ValidationError as e:
        await send_bad_message(ctx, e)
        return

    try:
        await session.play_card(ctx.player_id, msg.observed_version)
    except GameError as e:
        await send_error(ctx, e)


async def handle_slap(data: dict, ctx: ConnectionContext, *, session: GameSession, **kw) -> None:
    if not await _require_joined(ctx):
        return

    try:
        msg = IntentMessage.model_validate(data)
    except ValidationError as e:
        await send_bad_message(ctx, e)
        return

    try:
        observed = msg.observed_version
        if observed is None:
            observed = ctx.last_seen_version
        result = await session.slap(ctx.player_id, observed)
    except GameError as e:
        await send_error(ctx, e)
        return

    await ctx.websocket.send_json({
        "type": "slap_result",
        "valid": result.valid,
        "rules": list(result.rules),
    })


async def handle_burn(data: dict, ctx: ConnectionContext, *, session: GameSession, **kw) -> None:
    if not await _require_joined(ctx):
        return

    try:
        card = await session.burn(ctx.player_id)
    except GameError as e:
        await send_error(ctx, e)
        return

    await ctx.websocket.send_json({"type": "card_burned", "card": card.to_dict()})


# ---------------------------------------------------------------------------
# Snapshot stream
# ---------------------------------------------------------------------------

async def forward_snapshots(
    queue: asyncio.Queue,
    ctx: ConnectionContext,
    session: GameSession,
    reveal_hands: bool = False,
) -> None:
    """
    Send every snapshot from a subscription to one connection, in order.

    Runs until cancelled. Each message carries the viewer's state and the
    events that produced it.
    """
    while True:
        snapshot = await queue.get()
        await ctx.websocket.send_json({
            "type": "game_state",
            "game_state": snapshot.to_dict(ctx.player_id, reveal_hands=reveal_hands),
            "events": [e.to_dict() for e in session.events_for_version(snapshot.version)],
        })
        ctx.last_seen_version = snapshot.version


HANDLERS = {
    "join": handle_join,
    "set_rules": handle_set_rules,
    "start_game": handle_start_game,
    "play_card": handle_play_card,
    "slap": handle_slap,
    "burn": handle_burn,
    "play_again": handle_play_again,
    "leave": handle_leave,
}
