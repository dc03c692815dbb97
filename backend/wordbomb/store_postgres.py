from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TypeVar

import asyncpg

from . import database_rooms
from .errors import DuplicateAnswer, NameTaken, PlayerNotFound, RoomNotFound, StaleRoundAction, StoreUnavailable
from .game_constants import MAX_PLAYERS
from .game_types import Answer, Channel, ChangeEvent, ChatMessage, GameMode, Player, Room, RoomSettings, RoundState
from .game_utils import (
    now_ms,
    random_id,
    random_room_code,
    sanitize_player_name,
    sanitize_room_code,
    time_limit_for_difficulty,
)
from .redis_cache import RedisNotifier
from .store import ChangeFeed, RoomStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONNECTION_ERRORS = (OSError, asyncpg.exceptions.ConnectionDoesNotExistError, asyncpg.exceptions.InterfaceError)


class PostgresRoomStore(RoomStore):
    """Room store backed by asyncpg.

    Only the local process sees in-process notifications; when a
    ``RedisNotifier`` is attached every write is also relayed to other
    processes. Without one, remote clients rely on polling.
    """

    def __init__(
        self,
        pool: asyncpg.Pool,
        feed: ChangeFeed | None = None,
        *,
        notifier: RedisNotifier | None = None,
        max_players: int = MAX_PLAYERS,
    ) -> None:
        super().__init__(feed, max_players=max_players)
        self.pool = pool
        self.notifier = notifier

    async def _call(self, operation: Callable[..., Awaitable[T]], *args: Any) -> T:
        try:
            return await operation(self.pool, *args)
        except CONNECTION_ERRORS as exc:
            logger.exception("Database call %s failed", getattr(operation, "__name__", operation))
            raise StoreUnavailable(str(exc)) from exc

    def _emit(self, channel: Channel, room_code: str, payload: Any) -> None:
        super()._emit(channel, room_code, payload)
        if self.notifier is not None:
            self.notifier.publish_nowait(
                ChangeEvent(channel=channel, room_code=room_code.upper(), payload=payload)
            )

    async def close(self) -> None:
        if self.notifier is not None:
            await self.notifier.close()

    async def create_room(
        self,
        room_settings: RoomSettings,
        host_name: str,
        *,
        is_spectator: bool = False,
    ) -> tuple[str, str]:
        name = sanitize_player_name(host_name) or "Host"
        for _ in range(24):
            created_at = now_ms()
            room = Room(
                code=random_room_code(),
                host_id=random_id(),
                game_mode=room_settings.game_mode,
                difficulty=room_settings.difficulty,
                max_rounds=room_settings.max_rounds,
                lives_per_player=room_settings.lives_per_player,
                points_per_word=room_settings.points_per_word,
                created_at=created_at,
            )
            host = Player(
                id=room.host_id,
                room_code=room.code,
                name=name,
                is_host=True,
                is_spectator=is_spectator,
                lives=room_settings.lives_per_player,
                joined_at=created_at,
            )
            if await self._call(database_rooms.insert_room, room, host):
                self._emit("room", room.code, room)
                self._emit("players", room.code, host)
                return room.code, room.host_id
        raise RuntimeError("Failed to allocate room code")

    async def get_room(self, room_code: str) -> Room | None:
        return await self._call(database_rooms.fetch_room, sanitize_room_code(room_code))

    async def update_room(self, room_code: str, **changes: Any) -> Room:
        room = await self._call(database_rooms.update_room, sanitize_room_code(room_code), changes)
        if room is None:
            raise RoomNotFound(room_code)
        self._emit("room", room.code, room)
        return room

    async def join_room(self, room_code: str, name: str) -> tuple[str, GameMode]:
        code = sanitize_room_code(room_code)
        player_name = sanitize_player_name(name)
        room = await self.get_room(code)
        self._check_join(room, await self.list_active_players(code), player_name)
        assert room is not None
        player = Player(
            id=random_id(),
            room_code=code,
            name=player_name,
            lives=room.lives_per_player or 3,
            joined_at=now_ms(),
        )
        try:
            await self._call(database_rooms.insert_player, player)
        except asyncpg.exceptions.UniqueViolationError as exc:
            raise NameTaken() from exc
        self._emit("players", code, player)
        return player.id, room.game_mode

    async def add_player(self, player: Player) -> Player:
        code = sanitize_room_code(player.room_code)
        if await self.get_room(code) is None:
            raise RoomNotFound(code)
        player.room_code = code
        player.joined_at = player.joined_at or now_ms()
        try:
            await self._call(database_rooms.insert_player, player)
        except asyncpg.exceptions.UniqueViolationError as exc:
            raise NameTaken() from exc
        self._emit("players", code, player)
        return player

    async def get_player(self, player_id: str) -> Player | None:
        return await self._call(database_rooms.fetch_player, player_id)

    async def list_active_players(self, room_code: str) -> list[Player]:
        return await self._call(database_rooms.fetch_active_players, sanitize_room_code(room_code))

    async def update_player(self, player_id: str, **changes: Any) -> Player:
        player = await self._call(database_rooms.update_player, player_id, changes)
        if player is None:
            raise PlayerNotFound(player_id)
        self._emit("players", player.room_code, player)
        return player

    async def increment_player_score(self, player_id: str, points: int) -> int:
        player = await self._call(database_rooms.increment_player_score, player_id, points)
        if player is None:
            raise PlayerNotFound(player_id)
        self._emit("players", player.room_code, player)
        return player.score

    async def get_round_state(self, room_code: str) -> RoundState | None:
        return await self._call(database_rooms.fetch_round_state, sanitize_room_code(room_code))

    async def publish_round_state(
        self,
        room_code: str,
        combo: str,
        round_number: int,
        *,
        round_start_time: int | None = None,
    ) -> RoundState:
        room = await self.get_room(room_code)
        if room is None:
            raise RoomNotFound(room_code)
        state = RoundState(
            room_code=room.code,
            round_number=int(round_number),
            current_combo=combo.upper(),
            time_limit=time_limit_for_difficulty(room.difficulty),
            round_start_time=round_start_time if round_start_time is not None else now_ms(),
        )
        if not await self._call(database_rooms.upsert_round_state, state):
            current = await self.get_round_state(room.code)
            raise StaleRoundAction(state.round_number, current.round_number if current else None)
        room.current_round = state.round_number
        self._emit("round", room.code, state)
        self._emit("room", room.code, room)
        return state

    async def record_answer(
        self,
        room_code: str,
        player_id: str,
        round_number: int,
        word: str,
        points: int,
        time_taken: float,
    ) -> Answer:
        answer = Answer(
            room_code=sanitize_room_code(room_code),
            player_id=player_id,
            round_number=int(round_number),
            word=word.strip().lower(),
            points=int(points),
            time_taken=round(float(time_taken), 3),
            submitted_at=now_ms(),
        )
        if not await self._call(database_rooms.insert_answer, answer):
            raise DuplicateAnswer()
        self._emit("answers", answer.room_code, answer)
        return answer

    async def list_round_answers(self, room_code: str, round_number: int) -> list[Answer]:
        return await self._call(database_rooms.fetch_round_answers, sanitize_room_code(room_code), round_number)

    async def send_chat_message(
        self,
        room_code: str,
        player_id: str | None,
        player_name: str,
        message: str,
        is_system_message: bool = False,
    ) -> ChatMessage:
        chat_message = ChatMessage(
            id=random_id(),
            room_code=sanitize_room_code(room_code),
            player_id=player_id,
            player_name=player_name,
            message=message,
            is_system_message=is_system_message,
            created_at=now_ms(),
        )
        try:
            await self._call(database_rooms.insert_chat_message, chat_message)
        except asyncpg.exceptions.ForeignKeyViolationError as exc:
            raise RoomNotFound(room_code) from exc
        self._emit("chat", chat_message.room_code, chat_message)
        return chat_message

    async def list_chat_messages(self, room_code: str, limit: int = 50) -> list[ChatMessage]:
        return await self._call(database_rooms.fetch_chat_messages, sanitize_room_code(room_code), limit)
