# tuktuk/core/realtime.py
import asyncio
import logging
import uuid
from functools import lru_cache
from typing import AsyncIterator

from pydantic import ValidationError
from redis import Redis
from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import RedisError

from tuktuk.core.config import get_settings
from tuktuk.schemas.realtime import ChangeEvent

logger = logging.getLogger(__name__)


class ChangeNotifier:
    """
    Publishes row-change events to Redis pub/sub and streams them back
    out as Server-Sent Events.

    Publishing happens after the database commit. A Redis outage never
    fails the mutation that triggered it; it is logged and dashboards
    fall back to their next manual refresh.
    """

    def __init__(self, redis_url: str, channel_prefix: str):
        self.redis_url = redis_url
        self.channel_prefix = channel_prefix
        self._client: Redis | None = None

    def channel(self, table: str) -> str:
        return f"{self.channel_prefix}:{table}"

    def _get_client(self) -> Redis:
        if self._client is None:
            self._client = Redis.from_url(self.redis_url, decode_responses=True)
        return self._client

    def publish(self, event: ChangeEvent) -> None:
        try:
            self._get_client().publish(
                self.channel(event.table), event.model_dump_json()
            )
        except RedisError as e:
            logger.warning(
                "Change notification dropped | table=%s id=%s error=%s",
                event.table,
                event.id,
                e,
            )

    async def stream(
        self,
        table: str,
        filters: dict[str, uuid.UUID],
    ) -> AsyncIterator[str]:
        """
        Yield SSE frames for events on `table` matching every filter.

        Reconnects to Redis with backoff (1s doubling up to 15s) and sends
        keep-alive comments while idle so proxies keep the stream open.
        """
        channel = self.channel(table)
        client: AsyncRedis | None = None
        pubsub = None
        backoff = 1.0

        # Advise client on retry
        yield "retry: 3000\n\n"
        try:
            while True:
                try:
                    if pubsub is None:
                        client = AsyncRedis.from_url(
                            self.redis_url, decode_responses=True
                        )
                        pubsub = client.pubsub(ignore_subscribe_messages=True)
                        await pubsub.subscribe(channel)

                    message = await pubsub.get_message(timeout=5.0)
                    if message:
                        frame = self._to_frame(message.get("data"), filters)
                        if frame:
                            yield frame
                    else:
                        yield ": keep-alive\n\n"
                    backoff = 1.0
                except RedisError as e:
                    logger.warning("Realtime stream error on %s: %s", channel, e)
                    yield f": redis-error, retrying in {int(backoff)}s\n\n"
                    await asyncio.sleep(backoff)
                    backoff = min(backoff * 2, 15.0)
                    await self._close(pubsub, client, channel)
                    pubsub = None
                    client = None
        finally:
            await self._close(pubsub, client, channel)

    @staticmethod
    def _to_frame(data: str | None, filters: dict[str, uuid.UUID]) -> str | None:
        if not data:
            return None
        try:
            event = ChangeEvent.model_validate_json(data)
        except ValidationError:
            logger.warning("Ignoring malformed change event: %r", data)
            return None
        if not event.matches(filters):
            return None
        return f"event: {event.event}\ndata: {event.model_dump_json()}\n\n"

    @staticmethod
    async def _close(pubsub, client: AsyncRedis | None, channel: str) -> None:
        try:
            if pubsub is not None:
                await pubsub.unsubscribe(channel)
                await pubsub.aclose()
            if client is not None:
                await client.aclose()
        except RedisError as e:
            logger.debug("Error while closing realtime subscription: %s", e)


@lru_cache
def get_notifier() -> ChangeNotifier:
    """
    FastAPI dependency returning the process-wide notifier.
    """
    settings = get_settings()
    return ChangeNotifier(settings.REDIS_URL, settings.REALTIME_CHANNEL_PREFIX)
