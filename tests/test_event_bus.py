"""Tests for the in-process event bus."""

import pytest

from blogapi.services.events import BaseEvent, EventPublishError, EventType, InProcessEventBus


def _like_event(post_id: str = "p1") -> BaseEvent:
    return BaseEvent(type=EventType.LIKE, payload={"post_id": post_id, "username_from": "bob"})


@pytest.mark.asyncio
class TestInProcessEventBus:
    """Tests for InProcessEventBus delivery and lifecycle."""

    async def test_delivers_to_every_subscriber(self):
        bus = InProcessEventBus()
        first, second = [], []

        async def record_first(event):
            first.append(event)

        async def record_second(event):
            second.append(event)

        bus.subscribe(record_first)
        bus.subscribe(record_second)
        try:
            await bus.publish(_like_event())
            await bus.drain()
        finally:
            await bus.stop()

        assert [e.payload["post_id"] for e in first] == ["p1"]
        assert [e.payload["post_id"] for e in second] == ["p1"]

    async def test_events_delivered_in_publish_order(self):
        bus = InProcessEventBus()
        seen = []

        async def record(event):
            seen.append(event.payload["post_id"])

        bus.subscribe(record)
        try:
            for i in range(5):
                await bus.publish(_like_event(f"p{i}"))
            await bus.drain()
        finally:
            await bus.stop()

        assert seen == ["p0", "p1", "p2", "p3", "p4"]

    async def test_failing_handler_does_not_stop_delivery(self):
        bus = InProcessEventBus()
        seen = []

        async def broken(event):
            raise RuntimeError("handler failed")

        async def record(event):
            seen.append(event)

        bus.subscribe(broken)
        bus.subscribe(record)
        try:
            await bus.publish(_like_event("p1"))
            await bus.publish(_like_event("p2"))
            await bus.drain()
        finally:
            await bus.stop()

        assert len(seen) == 2
        assert not bus.is_running

    async def test_publish_starts_consumer(self):
        bus = InProcessEventBus()

        assert not bus.is_running
        await bus.publish(_like_event())

        assert bus.is_running
        await bus.stop()

    async def test_full_queue_rejects_publish(self):
        bus = InProcessEventBus(maxsize=1)
        bus.start()
        try:
            # The consumer cannot run until this coroutine yields
            await bus.publish(_like_event("p1"))
            with pytest.raises(EventPublishError):
                await bus.publish(_like_event("p2"))
        finally:
            await bus.stop()

    async def test_stop_is_idempotent(self):
        bus = InProcessEventBus()
        bus.start()

        await bus.stop()
        await bus.stop()

        assert not bus.is_running

    async def test_event_timestamp_defaults_to_utc_now(self):
        event = _like_event()

        assert event.timestamp.endswith("+00:00")
