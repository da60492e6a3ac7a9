from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from ..errors import GameError, ShapeMismatch
from ..events import EventBase
from ..game import Game
from ..state import games

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["ws"])


def _visible(event: EventBase, player_id: Optional[int]) -> bool:
    audience = event.visible_to()
    return audience is None or audience == player_id


async def handle_ws_message(game: Game, player_id: int, data: Any) -> Optional[bool]:
    """Dispatch one inbound websocket command to the client façade."""
    if not isinstance(data, dict):
        raise ShapeMismatch(f"Message must be a JSON object, got {type(data).__name__}")
    client = game.client
    msg_type = data.get("type")
    if msg_type == "suggest_team":
        await client.suggest_team(player_id, data.get("team", []))
    elif msg_type == "team_vote":
        return await client.cast_team_vote(player_id, data.get("vote"), round_id=data.get("round_id"))
    elif msg_type == "mission_vote":
        return await client.cast_mission_vote(player_id, data.get("vote"), round_id=data.get("round_id"))
    elif msg_type == "clairvoyance_target":
        await client.select_clairvoyance_target(player_id, data.get("target"))
    elif msg_type == "clairvoyance_word":
        await client.announce_clairvoyance_word(player_id, data.get("word"))
    elif msg_type == "merlin_guess":
        await client.guess_merlin(player_id, data.get("target"))
    else:
        logger.debug("Ignoring unknown message type %r", msg_type)
    return None


async def _forward_events(ws: WebSocket, game: Game, player_id: Optional[int]) -> None:
    sub = game.subscribe()
    backlog = list(game.events.history)
    try:
        for event in backlog:
            if _visible(event, player_id):
                await ws.send_json({"type": "event", "data": event.model_dump(mode="json")})
        async for event in sub:
            if _visible(event, player_id):
                await ws.send_json({"type": "event", "data": event.model_dump(mode="json")})
        await ws.send_json({"type": "closed", "state": game.client.snapshot().model_dump(mode="json")})
    finally:
        sub.close()


async def _receive_commands(ws: WebSocket, game: Game, player_id: Optional[int]) -> None:
    while True:
        data = await ws.receive_json()
        if player_id is None:
            # Observers without a seat can only listen.
            await ws.send_json({"type": "error", "detail": "player_id required"})
            continue
        try:
            await handle_ws_message(game, player_id, data)
        except GameError as exc:
            await ws.send_json({"type": "error", "error": type(exc).__name__, "detail": str(exc)})


@router.websocket("/ws/{game_id}")
async def game_ws_endpoint(ws: WebSocket, game_id: str, player_id: Optional[int] = Query(default=None)):
    await ws.accept()
    game = games.get(game_id)
    if game is None:
        await ws.close(code=4002)
        return
    if player_id is not None and not 0 <= player_id < game.num_players:
        await ws.close(code=4001)
        return

    await ws.send_json({"type": "state", "data": game.client.snapshot().model_dump(mode="json")})
    if player_id is not None:
        info = game.client.private_info(player_id)
        await ws.send_json({"type": "info", "data": info.model_dump(mode="json")})

    tasks = [
        asyncio.create_task(_forward_events(ws, game, player_id)),
        asyncio.create_task(_receive_commands(ws, game, player_id)),
    ]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("WebSocket error for game %s: %r", game_id, exc)
    finally:
        for task in tasks:
            task.cancel()
