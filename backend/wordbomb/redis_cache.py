from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from redis.asyncio import Redis
from redis.asyncio import from_url as redis_from_url

from .config import settings
from .game_types import RECORD_TYPES, ChangeEvent, record_from_dict, record_to_dict
from .game_utils import random_id
from .store import ChangeFeed

logger = logging.getLogger(__name__)

_redis: Redis | None = None


def is_redis_configured() -> bool:
    return bool(settings.redis_url)


def get_redis() -> Redis | None:
    return _redis


async def init_redis() -> bool:
    global _redis
    if _redis is not None:
        return True

    if not settings.redis_url:
        logger.info("Redis URL is not configured, cross-process notifications disabled")
        return False

    client = redis_from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        await client.ping()
    except Exception:
        logger.exception("Failed to connect to Redis %s", settings.redis_url)
        await client.aclose()
        return False

    _redis = client
    logger.info("Redis notifications connected")
    return True


async def close_redis() -> None:
    global _redis
    if _redis is None:
        return
    try:
        await _redis.aclose()
    finally:
        _redis = None


async def ping_redis() -> bool:
    if _redis is None:
        return False
    try:
        await _redis.ping()
        return True
    except Exception:
        logger.exception("Redis ping failed")
        return False


def encode_event(event: ChangeEvent, origin: str) -> str:
    return json.dumps(
        {
            "channel": event.channel,
            "roomCode": event.room_code,
            "origin": origin,
            "payload": record_to_dict(event.payload),
        },
        ensure_ascii=False,
    )


def decode_event(raw: str) -> ChangeEvent | None:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Dropping malformed notification %r", raw)
        return None
    if not isinstance(data, dict):
        return None
    record_type = RECORD_TYPES.get(data.get("channel"))  # type: ignore[arg-type]
    payload = data.get("payload")
    if record_type is None or not isinstance(payload, dict):
        return None
    return ChangeEvent(
        channel=data["channel"],
        room_code=str(data.get("roomCode") or "").upper(),
        payload=record_from_dict(record_type, payload),
        origin=str(data.get("origin") or ""),
    )


class RedisNotifier:
    """Relays change notifications between processes sharing one database.

    Writes made here are published to ``{prefix}:{ROOM}``; messages from other
    processes are replayed into the local feed. Own messages are skipped by
    origin id so local subscribers never see a write twice.
    """

    def __init__(self, client: Redis, feed: ChangeFeed, prefix: str = settings.redis_channel_prefix) -> None:
        self.client = client
        self.feed = feed
        self.prefix = prefix
        self.origin = random_id()
        self._listener: asyncio.Task[None] | None = None
        self._pending: set[asyncio.Task[None]] = set()

    def channel_for(self, room_code: str) -> str:
        return f"{self.prefix}:{room_code.upper()}"

    async def publish(self, event: ChangeEvent) -> None:
        try:
            await self.client.publish(self.channel_for(event.room_code), encode_event(event, self.origin))
        except Exception:
            logger.exception("Redis publish failed for %s:%s", event.channel, event.room_code)

    def publish_nowait(self, event: ChangeEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self.publish(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def handle_message(self, message: dict[str, Any]) -> None:
        if message.get("type") not in {"message", "pmessage"}:
            return
        event = decode_event(message.get("data"))
        if event is None or event.origin == self.origin:
            return
        self.feed.publish(event)

    async def start(self) -> None:
        if self._listener is not None:
            return
        self._listener = asyncio.create_task(self._listen(), name="redis-notifier")

    async def _listen(self) -> None:
        pubsub = self.client.pubsub()
        await pubsub.psubscribe(f"{self.prefix}:*")
        try:
            async for message in pubsub.listen():
                self.handle_message(message)
        except Exception:
            logger.exception("Redis notification listener stopped")
        finally:
            await pubsub.aclose()

    async def close(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            await asyncio.gather(self._listener, return_exceptions=True)
            self._listener = None
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
