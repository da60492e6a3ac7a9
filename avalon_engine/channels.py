"""Message plumbing between the client façade and the driver.

Inbound traffic (façade → driver) goes through :class:`Channel` objects
grouped in an :class:`Inbox`; outbound traffic (driver → observers) goes
through the :class:`EventStream`.
"""
from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Generic, List, Optional, Tuple, TypeVar

from .constants import Alignment, MissionVote, TeamVote
from .errors import ChannelClosed
from .events import EventBase

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CLOSED = object()


class Channel(Generic[T]):
    """FIFO channel whose messages carry the round they were sent for."""

    def __init__(self, name: str):
        self.name = name
        self._queue: "asyncio.Queue[Tuple[int, object]]" = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, round_id: int, item: T) -> None:
        """Queue *item* for the driver. Never suspends."""
        if self._closed:
            raise ChannelClosed(f"Channel {self.name!r} is closed")
        self._queue.put_nowait((round_id, item))

    async def receive(self, round_id: int) -> T:
        """Wait for the next message sent for *round_id*, dropping stale ones."""
        while True:
            if self._closed and self._queue.empty():
                raise ChannelClosed(f"Channel {self.name!r} is closed")
            tag, item = await self._queue.get()
            if item is _CLOSED:
                raise ChannelClosed(f"Channel {self.name!r} is closed")
            if tag != round_id:
                logger.warning(
                    "Dropping message on %s for round %s (current round %s)",
                    self.name, tag, round_id,
                )
                continue
            return item  # type: ignore[return-value]

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Wake a receiver that is already parked on the queue.
        self._queue.put_nowait((-1, _CLOSED))


class Inbox:
    """The driver's inbound channels, one per kind of player input."""

    def __init__(self) -> None:
        self.team: Channel[List[int]] = Channel("team")
        self.team_votes: Channel[List[TeamVote]] = Channel("team_votes")
        self.mission_votes: Channel[List[MissionVote]] = Channel("mission_votes")
        self.clairvoyance_target: Channel[int] = Channel("clairvoyance_target")
        self.clairvoyance_word: Channel[Alignment] = Channel("clairvoyance_word")
        self.merlin_guess: Channel[int] = Channel("merlin_guess")

    def channels(self) -> List[Channel]:
        return [
            self.team,
            self.team_votes,
            self.mission_votes,
            self.clairvoyance_target,
            self.clairvoyance_word,
            self.merlin_guess,
        ]

    def close(self) -> None:
        for channel in self.channels():
            channel.close()


class Subscription:
    """One observer's ordered view of an :class:`EventStream`."""

    def __init__(self, stream: "EventStream"):
        self._stream = stream
        self._queue: "asyncio.Queue[Optional[EventBase]]" = asyncio.Queue()

    def _push(self, event: Optional[EventBase]) -> None:
        self._queue.put_nowait(event)

    async def get(self) -> Optional[EventBase]:
        """Next event, or ``None`` once the stream is closed and drained."""
        event = await self._queue.get()
        if event is None:
            # Keep answering None to later callers too.
            self._queue.put_nowait(None)
        return event

    def close(self) -> None:
        self._stream.unsubscribe(self)

    def __aiter__(self) -> AsyncIterator[EventBase]:
        return self

    async def __anext__(self) -> EventBase:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event


class EventStream:
    """One-directional fan-out of driver events to any number of observers."""

    def __init__(self) -> None:
        self.history: List[EventBase] = []
        self._subscribers: List[Subscription] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self) -> Subscription:
        sub = Subscription(self)
        if self._closed:
            sub._push(None)
        else:
            self._subscribers.append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        if sub in self._subscribers:
            self._subscribers.remove(sub)
        sub._push(None)

    def publish(self, event: EventBase) -> None:
        if self._closed:
            raise ChannelClosed("Event stream is closed")
        logger.debug("Event %s", event.type)  # type: ignore[attr-defined]
        self.history.append(event)
        for sub in list(self._subscribers):
            sub._push(event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for sub in list(self._subscribers):
            sub._push(None)
        self._subscribers.clear()


__all__ = ["Channel", "Inbox", "Subscription", "EventStream"]
