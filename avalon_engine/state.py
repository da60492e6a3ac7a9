"""Centralised in-memory runtime state of the HTTP adapter.

This keeps the singletons that are shared across the routers so other
modules can simply import them without worrying about circular imports.
Games live only as long as the process, and are pruned a while after their
driver stops.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Set

from fastapi import HTTPException

from .config import settings
from .game import Game

logger = logging.getLogger(__name__)

games: Dict[str, Game] = {}

# Strong references so pending prunes are not garbage collected.
_prune_tasks: Set[asyncio.Task] = set()


def get_game(game_id: str) -> Game:
    game: Optional[Game] = games.get(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="Game not found")
    return game


async def _prune_after_delay(game_id: str, game: Game, delay: float) -> None:
    await asyncio.sleep(delay)
    # The id may have been freed by DELETE in the meantime.
    if games.get(game_id) is game:
        games.pop(game_id, None)
        logger.info("Pruned game %s (%s)", game_id, game.record.phase.value)


def prune_when_done(game_id: str, game: Game) -> None:
    """Drop *game* from the registry once its driver task has ended."""

    def _on_done(_task: asyncio.Task) -> None:
        task = asyncio.create_task(
            _prune_after_delay(game_id, game, settings.game_retention_seconds)
        )
        _prune_tasks.add(task)
        task.add_done_callback(_prune_tasks.discard)

    assert game.task is not None, "game must be started first"
    game.task.add_done_callback(_on_done)


__all__ = ["games", "get_game", "prune_when_done"]
