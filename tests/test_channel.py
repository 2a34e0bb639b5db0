from __future__ import annotations

import asyncio

import pytest

from whatsalarm.core.channel import ObservationChannel


def test_receive_returns_everything_sent() -> None:
    async def scenario() -> list[int]:
        channel: ObservationChannel[int] = ObservationChannel(10)
        channel.send(1)
        channel.send(2)
        return await channel.receive(0.1)

    assert asyncio.run(scenario()) == [1, 2]


def test_receive_times_out_with_empty_batch() -> None:
    async def scenario() -> list[int]:
        channel: ObservationChannel[int] = ObservationChannel(10)
        return await channel.receive(0.01)

    assert asyncio.run(scenario()) == []


def test_full_channel_drops_oldest() -> None:
    async def scenario() -> tuple[list[int], int]:
        channel: ObservationChannel[int] = ObservationChannel(3)
        for value in range(5):
            channel.send(value)
        return await channel.receive(0.1), channel.dropped

    batch, dropped = asyncio.run(scenario())
    assert batch == [2, 3, 4]
    assert dropped == 2


def test_send_wakes_a_waiting_receiver() -> None:
    async def scenario() -> list[str]:
        channel: ObservationChannel[str] = ObservationChannel(10)
        waiter = asyncio.create_task(channel.receive(5))
        await asyncio.sleep(0)
        channel.send("node")
        return await waiter

    assert asyncio.run(scenario()) == ["node"]


def test_close_wakes_receiver_and_rejects_sends() -> None:
    async def scenario() -> tuple[list[str], bool, bool]:
        channel: ObservationChannel[str] = ObservationChannel(10)
        waiter = asyncio.create_task(channel.receive(5))
        await asyncio.sleep(0)
        channel.close()
        batch = await waiter
        return batch, channel.send("late"), channel.closed

    batch, accepted, closed = asyncio.run(scenario())
    assert batch == []
    assert accepted is False
    assert closed is True


def test_max_items_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ObservationChannel(0)


def test_discard_empties_buffer_without_closing() -> None:
    channel: ObservationChannel[int] = ObservationChannel(5)
    channel.send(1)
    channel.send(2)

    assert channel.discard() == 2
    assert len(channel) == 0
    assert channel.closed is False
    assert channel.send(3) is True
