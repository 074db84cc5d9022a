"""
Redis Streams Event Bus
At-least-once publish/subscribe over Redis consumer groups
"""
import asyncio
import json
import time
from typing import Any, Dict, List, Optional, Set

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import ResponseError
from loguru import logger

from core.config import settings
from core.exceptions import EventBusException
from application.repositories.interfaces import EventHandler, IEventBus


class RedisStreamEventBus(IEventBus):
    """
    Event bus backed by one Redis stream per topic.

    Each delivered message is handled in its own task and acknowledged
    (XACK) only after its handler returns. Messages whose handler raised
    stay in the consumer group's pending list and are reclaimed with
    XAUTOCLAIM once idle for `claim_idle_ms`, so they are redelivered.

    Usage:
        bus = RedisStreamEventBus()
        await bus.connect()
        bus.subscribe("job.application.submit", handler)
        await bus.start()
        ...
        await bus.stop()
    """

    def __init__(
        self,
        client: Optional[Redis] = None,
        stream_prefix: str = settings.EVENT_BUS_STREAM_PREFIX,
        group: str = settings.EVENT_BUS_CONSUMER_GROUP,
        consumer: str = settings.EVENT_BUS_CONSUMER_NAME,
        block_ms: int = settings.EVENT_BUS_BLOCK_MS,
        batch_size: int = settings.EVENT_BUS_BATCH_SIZE,
        claim_idle_ms: int = settings.EVENT_BUS_CLAIM_IDLE_MS,
        max_stream_length: int = settings.EVENT_BUS_MAX_STREAM_LENGTH,
    ):
        self._redis: Optional[Redis] = client
        self.stream_prefix = stream_prefix
        self.group = group
        self.consumer = consumer
        self.block_ms = block_ms
        self.batch_size = batch_size
        self.claim_idle_ms = claim_idle_ms
        self.max_stream_length = max_stream_length

        self._handlers: Dict[str, EventHandler] = {}
        self._in_flight: Set[str] = set()
        self.active_tasks: Set[asyncio.Task] = set()
        self.running = False
        self._consumer_task: Optional[asyncio.Task] = None
        self._last_claim = 0.0

    async def connect(self):
        """Connect to Redis"""
        if self._redis is not None:
            return
        self._redis = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=settings.REDIS_SOCKET_CONNECT_TIMEOUT,
        )
        logger.info(f"Event bus connected to Redis: {settings.REDIS_URL}")

    async def disconnect(self):
        """Disconnect from Redis"""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Event bus disconnected from Redis")

    def _stream(self, topic: str) -> str:
        return f"{self.stream_prefix}{topic}"

    def _topic(self, stream: str) -> str:
        return stream[len(self.stream_prefix):]

    async def publish(self, topic: str, payload: Dict[str, Any]) -> str:
        """
        Append a message to the topic's stream

        Returns:
            Redis stream entry ID

        Raises:
            EventBusException: Redis unavailable or write failed
        """
        if self._redis is None:
            raise EventBusException(f"Event bus not connected, cannot publish to {topic}")

        try:
            message_id = await self._redis.xadd(
                self._stream(topic),
                {"payload": json.dumps(payload)},
                maxlen=self.max_stream_length,
                approximate=True,
            )
        except Exception as e:
            logger.error(f"Failed to publish to {topic}: {e}")
            raise EventBusException(f"Failed to publish to {topic}: {e}") from e

        logger.debug(f"Published {topic} -> {message_id}")
        return message_id

    def subscribe(self, topic: str, handler: EventHandler) -> None:
        """Register the handler for a topic (one handler per topic per consumer group)"""
        self._handlers[topic] = handler

    async def _ensure_group(self, stream: str):
        try:
            await self._redis.xgroup_create(stream, self.group, id="0", mkstream=True)
            logger.info(f"Created consumer group {self.group} on {stream}")
        except ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise

    async def start(self):
        """Create consumer groups and start consuming in the background"""
        if self._redis is None:
            raise EventBusException("Event bus not connected")
        if not self._handlers:
            logger.warning("Event bus started without subscriptions")
            return

        for topic in self._handlers:
            await self._ensure_group(self._stream(topic))

        self.running = True
        self._consumer_task = asyncio.create_task(self._consume_loop())
        logger.info(f"🚀 Event bus consuming {list(self._handlers)} as {self.group}/{self.consumer}")

    async def stop(self):
        """Stop consuming and wait for in-flight handlers"""
        self.running = False
        if self._consumer_task is not None:
            self._consumer_task.cancel()
            try:
                await self._consumer_task
            except asyncio.CancelledError:
                pass
            self._consumer_task = None

        if self.active_tasks:
            logger.info(f"Waiting for {len(self.active_tasks)} in-flight message(s)...")
            await asyncio.gather(*self.active_tasks, return_exceptions=True)

    async def _consume_loop(self):
        streams = {self._stream(topic): ">" for topic in self._handlers}
        try:
            while self.running:
                try:
                    await self._reclaim_idle(list(streams))
                    response = await self._redis.xreadgroup(
                        self.group,
                        self.consumer,
                        streams,
                        count=self.batch_size,
                        block=self.block_ms,
                    )
                    self._dispatch_response(response)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.error(f"Event bus read failed: {e}")
                    await asyncio.sleep(1)
        finally:
            logger.info("🛑 Event bus consumer stopped")

    def _dispatch_response(self, response):
        if not response:
            return
        for stream, messages in response:
            for message_id, fields in messages:
                self._dispatch(stream, message_id, fields)

    async def _reclaim_idle(self, streams: List[str]):
        now = time.monotonic()
        if (now - self._last_claim) * 1000 < self.claim_idle_ms / 2:
            return
        self._last_claim = now

        for stream in streams:
            result = await self._redis.xautoclaim(
                stream,
                self.group,
                self.consumer,
                min_idle_time=self.claim_idle_ms,
                start_id="0-0",
                count=self.batch_size,
            )
            claimed = result[1] if len(result) > 1 else []
            for message_id, fields in claimed:
                if fields is None:
                    continue
                logger.info(f"Redelivering idle message {message_id} from {stream}")
                self._dispatch(stream, message_id, fields)

    def _dispatch(self, stream: str, message_id: str, fields: Optional[Dict[str, str]]):
        if message_id in self._in_flight:
            return
        self._in_flight.add(message_id)

        task = asyncio.create_task(self._handle(stream, message_id, fields or {}))
        self.active_tasks.add(task)

        def _done(t: asyncio.Task):
            self.active_tasks.discard(t)
            self._in_flight.discard(message_id)

        task.add_done_callback(_done)

    async def _handle(self, stream: str, message_id: str, fields: Dict[str, str]):
        topic = self._topic(stream)
        handler = self._handlers.get(topic)
        if handler is None:
            logger.warning(f"No handler for {topic}, leaving {message_id} pending")
            return

        try:
            payload = json.loads(fields["payload"])
        except (KeyError, TypeError, json.JSONDecodeError) as e:
            logger.error(f"Dropping undecodable message {message_id} on {topic}: {e}")
            await self._ack(stream, topic, message_id)
            return

        try:
            await handler(payload)
        except Exception as e:
            logger.error(f"Handler for {topic} failed on {message_id}, leaving it for redelivery: {e}")
            return

        if await self._ack(stream, topic, message_id):
            logger.debug(f"Acknowledged {message_id} on {topic}")

    async def _ack(self, stream: str, topic: str, message_id: str) -> bool:
        """Acknowledge a message; on failure it stays pending and is reclaimed later"""
        try:
            await self._redis.xack(stream, self.group, message_id)
            return True
        except Exception as e:
            logger.error(f"Failed to acknowledge {message_id} on {topic}, it will be redelivered: {e}")
            return False
