"""FastAPI WebSocket server for the slap-card game."""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from config import config
from errors import GameError
from handlers import HANDLERS, ConnectionContext, forward_snapshots
from logging_config import player_id_var, session_id_var, setup_logging
from session import GameSession

# Configure logging based on environment
setup_logging(
    level=config.LOG_LEVEL,
    environment=config.ENVIRONMENT,
)
logger = logging.getLogger(__name__)

# The single table this server hosts
session = GameSession.from_config(config)

# Leave intents waiting out the reconnect grace period, by player id
_pending_leaves: dict[str, asyncio.Task] = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(
        f"Slap server started (environment={config.ENVIRONMENT}, session={session.session_id})"
    )

    yield

    logger.info("Shutdown initiated...")
    for task in _pending_leaves.values():
        task.cancel()
    _pending_leaves.clear()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Slap Card Game",
    lifespan=lifespan,
)


@app.get("/health")
async def health_check():
    """Basic liveness check - is the app running?"""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": session.latest.version,
    }


@app.get("/api/state")
async def get_state():
    """Spectator view of the current game (no hand contents)."""
    return session.latest.to_dict(None, reveal_hands=False)


async def _leave_after_grace(player_id: str) -> None:
    """Remove a disconnected player unless they reconnect in time."""
    try:
        await asyncio.sleep(config.DISCONNECT_GRACE_SECONDS)
        await session.leave(player_id, "disconnected")
    except asyncio.CancelledError:
        raise
    except GameError as e:
        logger.debug(f"Leave for {player_id} not applied: {e.code}")
    finally:
        if _pending_leaves.get(player_id) is asyncio.current_task():
            del _pending_leaves[player_id]


async def handle_disconnect(player_id: str) -> None:
    """Mark a player offline and queue their leave after the grace period."""
    try:
        await session.set_connected(player_id, False)
    except GameError as e:
        logger.debug(f"Disconnect for {player_id} ignored: {e.code}")
        return
    previous = _pending_leaves.pop(player_id, None)
    if previous:
        previous.cancel()
    _pending_leaves[player_id] = asyncio.create_task(_leave_after_grace(player_id))


async def _resume_player(player_id: Optional[str]) -> Optional[str]:
    """Reattach a reconnecting player, or return None if they no longer have a seat."""
    if not player_id or session.latest.player(player_id) is None:
        return None
    pending = _pending_leaves.pop(player_id, None)
    if pending:
        pending.cancel()
    try:
        await session.set_connected(player_id, True)
    except GameError:
        return None
    return player_id


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()

    ctx = ConnectionContext(
        websocket=websocket,
        connection_id=str(uuid.uuid4()),
        player_id=await _resume_player(websocket.query_params.get("player_id")),
    )
    session_id_var.set(session.session_id)
    player_id_var.set(ctx.player_id)
    logger.debug(f"WebSocket connected as {ctx.connection_id} (player={ctx.player_id})")

    queue = session.subscribe()
    sender = asyncio.create_task(
        forward_snapshots(queue, ctx, session, reveal_hands=config.REVEAL_HANDS)
    )

    try:
        while True:
            data = await websocket.receive_json()
            handler = HANDLERS.get(data.get("type"))
            if handler:
                await handler(data, ctx, session=session)
                player_id_var.set(ctx.player_id)
            else:
                await websocket.send_json({
                    "type": "error",
                    "kind": "invalid_intent",
                    "code": "unknown_message",
                    "message": f"Unknown message type {data.get('type')!r}",
                })
    except WebSocketDisconnect:
        pass
    finally:
        sender.cancel()
        session.unsubscribe(queue)
        if ctx.player_id:
            await handle_disconnect(ctx.player_id)


def run():
    """Run the server using uvicorn."""
    import uvicorn

    logger.info(f"Starting slap server on {config.HOST}:{config.PORT}")
    logger.info(f"Debug mode: {config.DEBUG}")

    uvicorn.run(
        "main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
