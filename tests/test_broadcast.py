"""Tests for the in-process broadcast channel."""

import asyncio

import pytest

from sportsfest_backend.services.broadcast import (
    BroadcastChannel,
    MATCH_CREATED,
    MATCH_DELETED,
    MATCH_UPDATE,
)


def test_events_arrive_in_publish_order():
    channel = BroadcastChannel(queue_size=10)
    subscription = channel.subscribe()

    for version in range(3):
        channel.publish(MATCH_UPDATE, {"id": 1, "version": version})

    versions = [subscription.get_nowait()["data"]["version"] for _ in range(3)]
    assert versions == [0, 1, 2]
    assert subscription.get_nowait() is None


def test_slow_subscriber_loses_oldest_events():
    channel = BroadcastChannel(queue_size=2)
    slow = channel.subscribe()

    for version in range(5):
        channel.publish(MATCH_UPDATE, {"version": version})

    assert slow.pending() == 2
    assert slow.dropped == 3
    assert slow.get_nowait()["data"]["version"] == 3
    assert slow.get_nowait()["data"]["version"] == 4


def test_topic_filtering():
    channel = BroadcastChannel()
    deletions = channel.subscribe([MATCH_DELETED])

    assert channel.publish(MATCH_UPDATE, {"id": 1}) == 0
    assert channel.publish(MATCH_DELETED, {"match_id": 1}) == 1
    assert deletions.get_nowait() == {"event": MATCH_DELETED, "data": {"match_id": 1}}


def test_unknown_topics_are_rejected():
    channel = BroadcastChannel()
    with pytest.raises(ValueError):
        channel.subscribe(["match:exploded"])
    with pytest.raises(ValueError):
        channel.publish("match:exploded", {})


def test_detached_subscriber_receives_nothing():
    channel = BroadcastChannel()
    with channel.subscribe() as subscription:
        assert channel.subscriber_count == 1
    assert channel.subscriber_count == 0

    assert channel.publish(MATCH_CREATED, {"id": 2}) == 0
    assert subscription.pending() == 0


def test_async_iteration():
    channel = BroadcastChannel()

    async def scenario():
        subscription = channel.subscribe()
        channel.publish(MATCH_CREATED, {"id": 1})
        channel.publish(MATCH_UPDATE, {"id": 1})
        received = []
        async for event in subscription:
            received.append(event["event"])
            if len(received) == 2:
                break
        subscription.close()
        return received

    assert asyncio.run(scenario()) == [MATCH_CREATED, MATCH_UPDATE]
