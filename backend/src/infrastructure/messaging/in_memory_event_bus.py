"""
In-Memory Event Bus
Single-process bus for local development (EVENT_BUS_BACKEND=memory)
"""
import asyncio
import uuid
from typing import Any, Dict, List, Set, Tuple

from loguru import logger

from application.repositories.interfaces import EventHandler, IEventBus


class InMemoryEventBus(IEventBus):
    """Dispatches each published message to the topic handler in its own task

    A handler failure is retried up to `max_deliveries` times, then logged
    and dropped. Nothing survives a restart.
    """

    def __init__(self, max_deliveries: int = 3):
        self.max_deliveries = max_deliveries
        self.published: List[Tuple[str, Dict[str, Any]]] = []
        self._handlers: Dict[str, EventHandler] = {}
        self.active_tasks: Set[asyncio.Task] = set()

    async def publish(self, topic: str, payload: Dict[str, Any]) -> str:
        message_id = uuid.uuid4().hex
        self.published.append((topic, payload))

        handler = self._handlers.get(topic)
        if handler is not None:
            task = asyncio.create_task(self._deliver(topic, message_id, payload, handler))
            self.active_tasks.add(task)
            task.add_done_callback(self.active_tasks.discard)

        logger.debug(f"Published {topic} -> {message_id}")
        return message_id

    def subscribe(self, topic: str, handler: EventHandler) -> None:
        self._handlers[topic] = handler

    async def _deliver(self, topic: str, message_id: str, payload: Dict[str, Any], handler: EventHandler):
        for attempt in range(1, self.max_deliveries + 1):
            try:
                await handler(payload)
                return
            except Exception as e:
                logger.warning(f"Handler for {topic} failed on {message_id} (attempt {attempt}/{self.max_deliveries}): {e}")
        logger.error(f"Giving up on {message_id} after {self.max_deliveries} deliveries")

    async def drain(self):
        """Wait until every dispatched message has been handled"""
        while self.active_tasks:
            await asyncio.gather(*list(self.active_tasks), return_exceptions=True)

    async def stop(self):
        await self.drain()
