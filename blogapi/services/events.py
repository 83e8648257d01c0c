"""Create events and the in-process bus that replays them.

The publish endpoints put a create request on the bus instead of writing it
directly; a consumer task hands each event to every subscribed handler, and
each domain service ignores event types that are not its own. A handler
failure is logged and the event is not retried.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Protocol

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1000


class EventType(StrEnum):
    LIKE = "LIKE"
    POST = "POST"
    COMMENT = "COMMENT"


class BaseEvent(BaseModel):
    """Envelope for one create operation."""

    type: EventType
    payload: dict[str, Any]
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())


EventHandler = Callable[[BaseEvent], Awaitable[None]]


class EventPublishError(Exception):
    """Event could not be queued for delivery."""

    pass


class EventPublisher(Protocol):
    """Transport for create events; a managed pub/sub topic implements this in production."""

    async def publish(self, event: BaseEvent) -> None: ...


class InProcessEventBus:
    """Single-process event bus backed by an asyncio.Queue.

    The consumer task starts on the first publish (or an explicit
    ``start()``) and runs until ``stop()``.
    """

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE) -> None:
        self._queue: asyncio.Queue[BaseEvent] = asyncio.Queue(maxsize=maxsize)
        self._handlers: list[EventHandler] = []
        self._consumer: asyncio.Task[None] | None = None

    def subscribe(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    @property
    def is_running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._consumer = asyncio.create_task(self._consume(), name="event-bus-consumer")

    async def publish(self, event: BaseEvent) -> None:
        self.start()
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull as e:
            logger.warning(f"Event queue full, dropping {event.type} event")
            raise EventPublishError("Event queue is full") from e

    async def drain(self) -> None:
        """Wait until every queued event has been handled."""
        await self._queue.join()

    async def stop(self) -> None:
        consumer = self._consumer
        self._consumer = None
        if consumer is None:
            return
        consumer.cancel()
        try:
            await consumer
        except asyncio.CancelledError:
            pass

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                for handler in self._handlers:
                    try:
                        await handler(event)
                    except Exception:
                        logger.exception(f"Error handling {event.type} event")
            finally:
                self._queue.task_done()
