from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Awaitable, Callable

from .errors import GameAlreadyStarted, InvalidPlayerName, NameTaken, RoomFull, RoomNotFound
from .game_constants import MAX_PLAYERS
from .game_types import (
    Answer,
    Channel,
    ChangeEvent,
    ChatMessage,
    GameMode,
    Player,
    Room,
    RoomSettings,
    RoomStatus,
    RoundState,
)

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Any], Awaitable[None] | None]


class Subscription:
    def __init__(self, on_unsubscribe: Callable[[], None]) -> None:
        self._on_unsubscribe: Callable[[], None] | None = on_unsubscribe

    @property
    def active(self) -> bool:
        return self._on_unsubscribe is not None

    def unsubscribe(self) -> None:
        callback, self._on_unsubscribe = self._on_unsubscribe, None
        if callback is not None:
            callback()


class ChangeFeed:
    """In-process fan-out of store change notifications.

    Delivery is fire-and-forget: each callback runs in its own task, and a
    failing subscriber never affects the writer or other subscribers.
    """

    def __init__(self) -> None:
        self._subscribers: dict[tuple[Channel, str], list[ChangeCallback]] = defaultdict(list)
        self._pending: set[asyncio.Task[None]] = set()

    def subscribe(self, channel: Channel, room_code: str, callback: ChangeCallback) -> Subscription:
        key = (channel, room_code.upper())
        self._subscribers[key].append(callback)

        def remove() -> None:
            callbacks = self._subscribers.get(key)
            if not callbacks:
                return
            try:
                callbacks.remove(callback)
            except ValueError:
                return
            if not callbacks:
                self._subscribers.pop(key, None)

        return Subscription(remove)

    def subscriber_count(self, channel: Channel, room_code: str) -> int:
        return len(self._subscribers.get((channel, room_code.upper()), ()))

    def publish(self, event: ChangeEvent) -> None:
        callbacks = list(self._subscribers.get((event.channel, event.room_code.upper()), ()))
        if not callbacks:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop, dropping %s notification for %s", event.channel, event.room_code)
            return
        for callback in callbacks:
            task = loop.create_task(self._deliver(callback, event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _deliver(self, callback: ChangeCallback, event: ChangeEvent) -> None:
        try:
            result = callback(event.payload)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Subscriber failed for %s:%s", event.channel, event.room_code)

    async def drain(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


class RoomStore(ABC):
    """Authoritative room, player, round, answer and chat state.

    Writes are independent statements; nothing here wraps several of them in a
    transaction. Every write also emits a change notification on the matching
    channel, delivered best-effort.
    """

    def __init__(self, feed: ChangeFeed | None = None, max_players: int = MAX_PLAYERS) -> None:
        self.feed = feed or ChangeFeed()
        self.max_players = max_players

    @abstractmethod
    async def create_room(
        self,
        room_settings: RoomSettings,
        host_name: str,
        *,
        is_spectator: bool = False,
    ) -> tuple[str, str]: ...

    @abstractmethod
    async def get_room(self, room_code: str) -> Room | None: ...

    @abstractmethod
    async def update_room(self, room_code: str, **changes: Any) -> Room: ...

    @abstractmethod
    async def join_room(self, room_code: str, name: str) -> tuple[str, GameMode]: ...

    @abstractmethod
    async def add_player(self, player: Player) -> Player: ...

    @abstractmethod
    async def get_player(self, player_id: str) -> Player | None: ...

    @abstractmethod
    async def list_active_players(self, room_code: str) -> list[Player]: ...

    @abstractmethod
    async def update_player(self, player_id: str, **changes: Any) -> Player: ...

    @abstractmethod
    async def increment_player_score(self, player_id: str, points: int) -> int: ...

    @abstractmethod
    async def get_round_state(self, room_code: str) -> RoundState | None: ...

    @abstractmethod
    async def publish_round_state(
        self,
        room_code: str,
        combo: str,
        round_number: int,
        *,
        round_start_time: int | None = None,
    ) -> RoundState: ...

    @abstractmethod
    async def record_answer(
        self,
        room_code: str,
        player_id: str,
        round_number: int,
        word: str,
        points: int,
        time_taken: float,
    ) -> Answer: ...

    @abstractmethod
    async def list_round_answers(self, room_code: str, round_number: int) -> list[Answer]: ...

    @abstractmethod
    async def send_chat_message(
        self,
        room_code: str,
        player_id: str | None,
        player_name: str,
        message: str,
        is_system_message: bool = False,
    ) -> ChatMessage: ...

    @abstractmethod
    async def list_chat_messages(self, room_code: str, limit: int = 50) -> list[ChatMessage]: ...

    async def close(self) -> None:
        return None

    async def set_room_status(self, room_code: str, status: RoomStatus, **changes: Any) -> Room:
        return await self.update_room(room_code, status=status, **changes)

    async def update_player_score(self, player_id: str, score: int) -> Player:
        return await self.update_player(player_id, score=max(0, int(score)))

    def subscribe(self, channel: Channel, room_code: str, callback: ChangeCallback) -> Subscription:
        return self.feed.subscribe(channel, room_code, callback)

    def subscribe_room(self, room_code: str, callback: ChangeCallback) -> Subscription:
        return self.subscribe("room", room_code, callback)

    def subscribe_players(self, room_code: str, callback: ChangeCallback) -> Subscription:
        return self.subscribe("players", room_code, callback)

    def subscribe_round_state(self, room_code: str, callback: ChangeCallback) -> Subscription:
        return self.subscribe("round", room_code, callback)

    def subscribe_answers(self, room_code: str, callback: ChangeCallback) -> Subscription:
        return self.subscribe("answers", room_code, callback)

    def subscribe_chat_messages(self, room_code: str, callback: ChangeCallback) -> Subscription:
        return self.subscribe("chat", room_code, callback)

    def _emit(self, channel: Channel, room_code: str, payload: Any) -> None:
        self.feed.publish(ChangeEvent(channel=channel, room_code=room_code.upper(), payload=payload))

    def _check_join(self, room: Room | None, active_players: list[Player], name: str) -> None:
        if room is None:
            raise RoomNotFound()
        if room.status != "waiting":
            raise GameAlreadyStarted()
        if not name:
            raise InvalidPlayerName()
        if any(player.name == name for player in active_players):
            raise NameTaken()
        if len(active_players) >= self.max_players:
            raise RoomFull()
