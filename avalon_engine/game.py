"""Game session setup.

:func:`setup_game` deals the roles, hands out the crown and wires the
shared record, the driver, the client façade and the event stream together.
"""
from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional

from .channels import EventStream, Inbox, Subscription
from .client import GameClient
from .constants import GameResult
from .driver import GameDriver
from .game_logic import build_role_deck
from .record import GameRecord
from .schemas import GameConfig

logger = logging.getLogger(__name__)


class Game:
    """One running game: shared record, driver task, client façade and event stream."""

    def __init__(
        self,
        num_players: int,
        config: Optional[GameConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.rng = rng or random.Random()
        roles = build_role_deck(num_players, self.rng)
        crown_id = self.rng.randrange(num_players)

        self.record = GameRecord(roles, crown_id, config)
        self.inbox = Inbox()
        self.events = EventStream()
        self.driver = GameDriver(self.record, self.inbox, self.events, self.rng)
        self.client = GameClient(self.record, self.inbox)

        # Task created by ``start``; awaited by whoever needs the final result.
        self.task: Optional[asyncio.Task] = None

    @property
    def num_players(self) -> int:
        return self.record.num_players

    def subscribe(self) -> Subscription:
        return self.events.subscribe()

    async def run(self) -> GameResult:
        return await self.driver.run()

    def start(self) -> asyncio.Task:
        """Run the driver in the background of the current event loop."""
        if self.task is not None:
            raise RuntimeError("Game already started")
        self.task = asyncio.create_task(self.run())
        self.task.add_done_callback(self._on_done)
        return self.task

    def _on_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            logger.info("Game cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.debug("Driver stopped: %r", exc)

    def abandon(self) -> None:
        self.client.close()


def setup_game(
    num_players: int,
    config: Optional[GameConfig] = None,
    rng: Optional[random.Random] = None,
) -> Game:
    """Create a game for *num_players* with a uniformly shuffled role deck."""
    game = Game(num_players, config=config, rng=rng)
    logger.info(
        "New game: %d players, crown %d, clairvoyance %d",
        num_players, game.record.crown_id, game.record.clairvoyance_holder_id,
    )
    return game


__all__ = ["Game", "setup_game"]
