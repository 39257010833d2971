"""
Cross-process event channel over Redis pub/sub.

Every instance publishes events to ``<prefix><taskId>``. Each instance keeps a
single dedicated pub/sub connection and subscribes to a task's channel while at
least one local observer of that task is connected; received payloads are
forwarded verbatim to the local observers.
"""

import asyncio
import datetime
import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis_client
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..constants import DEFAULT_REDIS_CHANNEL_PREFIX
from ..exceptions import ConfigurationError
from ..models import to_wire
from ..sse import format_sse_frame
from .base import BaseEventChannel, Event
from .memory import SinkRegistry

logger = logging.getLogger(__name__)


class RedisEventChannel(BaseEventChannel):
    """
    Publishes events to Redis and relays subscribed channels to local observers.

    Args:
        publisher: Client used for PUBLISH.
        subscriber: Client dedicated to the pub/sub connection. Defaults to ``publisher``.
        channel_prefix: Prefix prepended to the task id to form the channel name.
        queue_maxsize: Bound of each observer queue.
        poll_timeout: Seconds the reader waits for a pub/sub message per poll.
        owns_clients: Close the clients in :meth:`aclose`.
    """

    def __init__(
        self,
        publisher: Redis,
        subscriber: Optional[Redis] = None,
        channel_prefix: str = DEFAULT_REDIS_CHANNEL_PREFIX,
        queue_maxsize: int = 100,
        poll_timeout: float = 1.0,
        owns_clients: bool = False,
    ):
        self._publisher = publisher
        self._subscriber = subscriber or publisher
        self.channel_prefix = channel_prefix
        self._poll_timeout = poll_timeout
        self._owns_clients = owns_clients
        self._registry = SinkRegistry(queue_maxsize)
        self._pubsub: Any = None
        self._reader_task: Optional[asyncio.Task] = None
        logger.info(f"Initialized RedisEventChannel with channel prefix '{channel_prefix}'.")

    def channel_for(self, task_id: str) -> str:
        return f"{self.channel_prefix}{task_id}"

    def task_id_for(self, channel: str) -> str:
        return channel[len(self.channel_prefix):] if channel.startswith(self.channel_prefix) else channel

    # --- Publishing ---

    async def send(self, event: Event) -> None:
        channel = self.channel_for(event.task_id)
        payload: Dict[str, Any] = to_wire(event)
        payload["timestamp"] = datetime.datetime.now(datetime.timezone.utc).isoformat()
        try:
            receivers = await self._publisher.publish(channel, json.dumps(payload))
            logger.debug(f"Published '{event.kind}' to {channel} ({receivers} subscriber(s)).")
        except (RedisError, OSError) as e:
            # Delivery is best-effort; storage remains the source of truth.
            logger.error(f"Failed to publish event to {channel}: {e}")

    # --- Subscribing ---

    def _ensure_pubsub(self) -> Any:
        if self._pubsub is None:
            self._pubsub = self._subscriber.pubsub()
        return self._pubsub

    def _ensure_reader(self) -> None:
        if self._reader_task is None or self._reader_task.done():
            self._reader_task = asyncio.create_task(self._reader_loop())

    async def subscribe(self, task_id: str) -> asyncio.Queue:
        queue = self._registry.add(task_id)
        if self._registry.count(task_id) == 1:
            channel = self.channel_for(task_id)
            try:
                await self._ensure_pubsub().subscribe(channel)
            except (RedisError, OSError) as e:
                # Forget the sink so the next observer retries the SUBSCRIBE.
                self._registry.remove(task_id, queue)
                logger.error(f"Failed to subscribe to {channel}: {e}")
                raise
            logger.info(f"Subscribed to Redis channel {channel}.")
        self._ensure_reader()
        return queue

    async def unsubscribe(self, task_id: str, queue: asyncio.Queue) -> None:
        if self._registry.remove(task_id, queue):
            await self._unsubscribe_channel(task_id)

    async def _unsubscribe_channel(self, task_id: str) -> None:
        if self._pubsub is None:
            return
        channel = self.channel_for(task_id)
        try:
            await self._pubsub.unsubscribe(channel)
            logger.info(f"Unsubscribed from Redis channel {channel}.")
        except (RedisError, OSError) as e:
            logger.error(f"Failed to unsubscribe from {channel}: {e}")

    async def _reader_loop(self) -> None:
        logger.debug("Redis pub/sub reader started.")
        while True:
            try:
                if self._pubsub is None or not self._pubsub.subscribed:
                    await asyncio.sleep(self._poll_timeout)
                    continue
                message = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=self._poll_timeout)
                if message is not None:
                    await self._dispatch_message(message)
            except asyncio.CancelledError:
                logger.debug("Redis pub/sub reader cancelled.")
                raise
            except (RedisError, OSError) as e:
                logger.error(f"Redis pub/sub reader error: {e}")
                await asyncio.sleep(self._poll_timeout)

    async def _dispatch_message(self, message: Dict[str, Any]) -> int:
        """Forwards one pub/sub message to the local observers of its task."""
        if message.get("type") != "message":
            return 0
        channel = message.get("channel")
        data = message.get("data")
        if isinstance(channel, bytes):
            channel = channel.decode("utf-8")
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        task_id = self.task_id_for(channel)

        if self._registry.count(task_id) == 0:
            await self._unsubscribe_channel(task_id)
            return 0

        try:
            kind = json.loads(data).get("kind", "message")
        except (ValueError, AttributeError) as e:
            logger.error(f"Dropping malformed payload on {channel}: {e}")
            return 0

        delivered = self._registry.broadcast(task_id, format_sse_frame(kind, data))
        if self._registry.count(task_id) == 0:
            await self._unsubscribe_channel(task_id)
        return delivered

    # --- Connection helpers ---

    def get_active_connections(self, task_id: Optional[str] = None) -> int:
        return self._registry.count(task_id)

    async def close_task_connections(self, task_id: str) -> None:
        self._registry.close(task_id)
        await self._unsubscribe_channel(task_id)

    async def aclose(self) -> None:
        for task_id in self._registry.task_ids():
            self._registry.close(task_id)
        if self._reader_task is not None:
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
            self._reader_task = None
        if self._pubsub is not None:
            await self._pubsub.aclose()
            self._pubsub = None
        if self._owns_clients:
            await self._publisher.aclose()
            if self._subscriber is not self._publisher:
                await self._subscriber.aclose()
        logger.info("RedisEventChannel closed.")


def create_redis_event_channel(
    url: Optional[str],
    channel_prefix: str = DEFAULT_REDIS_CHANNEL_PREFIX,
    queue_maxsize: int = 100,
) -> RedisEventChannel:
    """Builds a channel with its own publisher and subscriber clients for ``url``."""
    if not url:
        raise ConfigurationError("Redis URL not provided. Set REDIS_URL or pass a url.")
    publisher = redis_client.from_url(url)
    subscriber = redis_client.from_url(url)
    return RedisEventChannel(
        publisher,
        subscriber,
        channel_prefix=channel_prefix,
        queue_maxsize=queue_maxsize,
        owns_clients=True,
    )
