"""Tests for the vote accumulator, the inbound channels and the event stream."""

import anyio
import pytest

from avalon_engine.channels import Channel, EventStream
from avalon_engine.constants import TeamVote
from avalon_engine.errors import ChannelClosed
from avalon_engine.events import TeamRejected
from avalon_engine.votes import VoteBuffer

A = TeamVote.APPROVE
R = TeamVote.REJECT


def test_vote_buffer_completes_once_every_slot_is_filled():
    buf = VoteBuffer(3)
    assert buf.cast(0, A) is None
    assert buf.cast(2, R) is None
    assert buf.pending() == [1]
    assert buf.cast(1, A) == [A, A, R]
    # cleared for the next round
    assert buf.filled == 0
    assert buf.size == 3


def test_vote_buffer_overwrites_instead_of_double_counting():
    buf = VoteBuffer(3)
    buf.cast(0, A)
    assert buf.cast(0, R) is None
    assert buf.cast(1, A) is None
    assert buf.filled == 2
    assert buf.cast(2, A) == [R, A, A]


def test_vote_buffer_reset_changes_size():
    buf = VoteBuffer()
    buf.reset(2)
    buf.cast(0, A)
    buf.reset(2)
    assert buf.filled == 0


@pytest.mark.anyio
async def test_channel_drops_stale_rounds():
    channel = Channel("team")
    channel.send(1, [0, 1])
    channel.send(2, [2, 3])
    with anyio.fail_after(1):
        assert await channel.receive(2) == [2, 3]


@pytest.mark.anyio
async def test_channel_close_wakes_receiver():
    channel = Channel("votes")
    received = []

    async def receiver():
        with pytest.raises(ChannelClosed):
            received.append(await channel.receive(1))

    with anyio.fail_after(1):
        async with anyio.create_task_group() as tg:
            tg.start_soon(receiver)
            await anyio.sleep(0.01)
            channel.close()
    assert received == []
    with pytest.raises(ChannelClosed):
        channel.send(1, [A])


@pytest.mark.anyio
async def test_event_stream_fans_out_in_order():
    stream = EventStream()
    first = stream.subscribe()
    second = stream.subscribe()
    stream.publish(TeamRejected(count=1))
    stream.publish(TeamRejected(count=2))
    stream.close()

    with anyio.fail_after(1):
        assert [e.count async for e in first] == [1, 2]
        assert [e.count async for e in second] == [1, 2]
    assert [e.count for e in stream.history] == [1, 2]


@pytest.mark.anyio
async def test_event_stream_late_and_closed_subscribers():
    stream = EventStream()
    stream.publish(TeamRejected(count=1))
    late = stream.subscribe()
    stream.publish(TeamRejected(count=2))
    late.close()
    stream.publish(TeamRejected(count=3))
    stream.close()

    with anyio.fail_after(1):
        assert [e.count async for e in late] == [2]
        assert await stream.subscribe().get() is None
    with pytest.raises(ChannelClosed):
        stream.publish(TeamRejected(count=4))
