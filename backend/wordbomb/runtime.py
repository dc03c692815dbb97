from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from .config import settings
from .database import close_db, get_db_pool, init_db, ping_db
from .dictionary import DictionaryLoadError, WordDictionary
from .game_types import Channel
from .game_utils import now_ms, sanitize_room_code
from .host_controller import HostRoundController
from .payloads import CHANNEL_PAYLOADS, room_payload
from .redis_cache import RedisNotifier, close_redis, get_redis, init_redis, is_redis_configured, ping_redis
from .rooms import RoomService
from .store import ChangeFeed, RoomStore, Subscription
from .store_memory import MemoryRoomStore
from .store_postgres import PostgresRoomStore

logger = logging.getLogger(__name__)

PUSH_CHANNELS: tuple[Channel, ...] = ("room", "players", "round", "answers", "chat")


class GameRuntime:
    """Process-wide services behind the HTTP and WebSocket routes."""

    def __init__(self, store: RoomStore | None = None, dictionary: WordDictionary | None = None) -> None:
        self.store = store
        self.dictionary = dictionary or WordDictionary(settings.words_path)
        self.rooms = RoomService(store) if store is not None else None
        self.controllers: dict[str, HostRoundController] = {}
        self._owns_database = False
        self._ws_stats: dict[str, int] = {
            "connectAttempts": 0,
            "connectRejected": 0,
            "disconnects": 0,
            "sendFailures": 0,
            "activeConnections": 0,
            "peakConnections": 0,
        }

    def _increment_stat(self, key: str, amount: int = 1) -> None:
        self._ws_stats[key] = int(self._ws_stats.get(key, 0)) + amount

    def _log_ws_event(self, event: str, level: int = logging.INFO, **fields: object) -> None:
        logger.log(
            level,
            "ws.%s %s",
            event,
            json.dumps(fields, ensure_ascii=False, separators=(",", ":")),
        )

    @property
    def ws_stats(self) -> dict[str, int]:
        return dict(self._ws_stats)

    async def startup(self) -> None:
        if self.store is None:
            self.store = await self._build_store()
        if self.rooms is None:
            self.rooms = RoomService(self.store)
        try:
            await self.dictionary.load()
        except DictionaryLoadError:
            logger.exception("Word list unavailable, every dictionary lookup will fail")

    async def _build_store(self) -> RoomStore:
        if settings.store_backend != "postgres":
            logger.info("Using in-memory room store")
            return MemoryRoomStore()

        await init_db()
        self._owns_database = True
        feed = ChangeFeed()
        notifier: RedisNotifier | None = None
        if await init_redis():
            client = get_redis()
            assert client is not None
            notifier = RedisNotifier(client, feed)
            await notifier.start()
        logger.info("Using Postgres room store (redis notifications: %s)", notifier is not None)
        return PostgresRoomStore(await get_db_pool(), feed, notifier=notifier)

    async def shutdown(self) -> None:
        self.controllers.clear()
        if self.store is not None:
            await self.store.close()
        if self._owns_database:
            await close_redis()
            await close_db()
        self._ws_stats["activeConnections"] = 0

    def require_store(self) -> RoomStore:
        if self.store is None:
            raise RuntimeError("Runtime is not started")
        return self.store

    def require_rooms(self) -> RoomService:
        if self.rooms is None:
            raise RuntimeError("Runtime is not started")
        return self.rooms

    def controller_for(self, room_code: str, host_id: str) -> HostRoundController:
        """Host controller for a room, kept across requests so combo recency survives."""
        code = sanitize_room_code(room_code)
        controller = self.controllers.get(code)
        if controller is None or controller.player_id != host_id:
            controller = HostRoundController(self.require_store(), code, host_id)
            self.controllers[code] = controller
        return controller

    async def health(self) -> dict[str, Any]:
        if self._owns_database:
            db_ok = await ping_db()
            database = "up" if db_ok else "down"
        else:
            db_ok = True
            database = "disabled"
        redis_ok = await ping_redis() if is_redis_configured() else False
        redis_status = "disabled" if not is_redis_configured() else ("up" if redis_ok else "down")
        return {
            "ok": db_ok,
            "store": type(self.store).__name__ if self.store is not None else None,
            "database": database,
            "redis": redis_status,
            "dictionary": self.dictionary.status(),
            "websocket": {
                "activeConnections": self._ws_stats["activeConnections"],
                "peakConnections": self._ws_stats["peakConnections"],
            },
        }

    async def _send_safe(self, websocket: WebSocket, data: dict[str, Any], room_code: str) -> bool:
        try:
            await websocket.send_json(data)
            return True
        except Exception as exc:
            # Connection may already be closed.
            self._increment_stat("sendFailures")
            logger.debug("[SEND_FAIL] room=%s reason=%s", room_code, repr(exc))
            return False

    async def handle_websocket(self, websocket: WebSocket, room_code: str) -> None:
        await websocket.accept()
        self._increment_stat("connectAttempts")
        store = self.require_store()
        code = sanitize_room_code(room_code)
        room = await store.get_room(code) if code else None
        if room is None:
            self._increment_stat("connectRejected")
            await self._send_safe(
                websocket,
                {"type": "error", "code": "ROOM_NOT_FOUND", "message": "Room not found"},
                code or "-",
            )
            await websocket.close(code=1008)
            self._log_ws_event("connect_rejected", level=logging.WARNING, roomCode=code or "-")
            return

        self._increment_stat("activeConnections")
        self._ws_stats["peakConnections"] = max(
            self._ws_stats["peakConnections"],
            self._ws_stats["activeConnections"],
        )
        self._log_ws_event("connected", roomCode=code)

        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        subscriptions: list[Subscription] = []
        for channel in PUSH_CHANNELS:
            message_type, build = CHANNEL_PAYLOADS[channel]

            def enqueue(payload: Any, message_type: str = message_type, build: Any = build) -> None:
                queue.put_nowait({"type": message_type, "data": build(payload)})

            subscriptions.append(store.subscribe(channel, code, enqueue))

        async def pump() -> None:
            while True:
                message = await queue.get()
                if message["type"] == "round":
                    message["serverTime"] = now_ms()
                if not await self._send_safe(websocket, message, code):
                    return

        sender = asyncio.create_task(pump(), name=f"{code}:ws-pump")
        try:
            await self._send_safe(websocket, {"type": "snapshot", "data": room_payload(room)}, code)
            while True:
                incoming = await websocket.receive_json()
                if isinstance(incoming, dict) and incoming.get("type") == "ping":
                    await self._send_safe(websocket, {"type": "pong", "serverTime": now_ms()}, code)
        except WebSocketDisconnect:
            pass
        except (ValueError, RuntimeError) as exc:
            self._log_ws_event("receive_failed", level=logging.WARNING, roomCode=code, reason=repr(exc))
        finally:
            for subscription in subscriptions:
                subscription.unsubscribe()
            sender.cancel()
            await asyncio.gather(sender, return_exceptions=True)
            self._increment_stat("disconnects")
            self._ws_stats["activeConnections"] = max(0, self._ws_stats["activeConnections"] - 1)
            self._log_ws_event("disconnected", roomCode=code)
