from __future__ import annotations

import asyncio
import copy
import logging
from dataclasses import fields, replace
from typing import Any, Callable

from .errors import DuplicateAnswer, PlayerNotFound, RoomNotFound, StaleRoundAction, StoreUnavailable
from .game_constants import MAX_PLAYERS
from .game_types import Answer, ChatMessage, GameMode, Player, Room, RoomSettings, RoundState
from .game_utils import (
    now_ms,
    random_id,
    random_room_code,
    sanitize_player_name,
    sanitize_room_code,
    time_limit_for_difficulty,
)
from .store import ChangeFeed, RoomStore

logger = logging.getLogger(__name__)

ROOM_FIELDS = {item.name for item in fields(Room)}
PLAYER_FIELDS = {item.name for item in fields(Player)}


class MemoryRoomStore(RoomStore):
    """Single-process store.

    ``available`` and ``deliver_notifications`` let tests simulate an
    unreachable backend and a lossy realtime channel.
    """

    def __init__(
        self,
        feed: ChangeFeed | None = None,
        *,
        max_players: int = MAX_PLAYERS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        super().__init__(feed, max_players=max_players)
        self.clock = clock
        self.available = True
        self.deliver_notifications = True
        self._rooms: dict[str, Room] = {}
        self._players: dict[str, Player] = {}
        self._rounds: dict[str, RoundState] = {}
        self._answers: dict[str, list[Answer]] = {}
        self._chat: dict[str, list[ChatMessage]] = {}
        self._lock = asyncio.Lock()

    def _ensure_available(self) -> None:
        if not self.available:
            raise StoreUnavailable("Room store is unavailable")

    def _emit(self, channel: Any, room_code: str, payload: Any) -> None:
        if not self.deliver_notifications:
            logger.debug("Dropping %s notification for %s", channel, room_code)
            return
        super()._emit(channel, room_code, copy.deepcopy(payload))

    def _require_room(self, room_code: str) -> Room:
        room = self._rooms.get(sanitize_room_code(room_code))
        if room is None:
            raise RoomNotFound(room_code)
        return room

    def _require_player(self, player_id: str) -> Player:
        player = self._players.get(player_id)
        if player is None:
            raise PlayerNotFound(player_id)
        return player

    def _active_players(self, room_code: str) -> list[Player]:
        players = [
            player
            for player in self._players.values()
            if player.room_code == room_code and player.is_active
        ]
        return sorted(players, key=lambda player: player.joined_at)

    def _stamp(self) -> int:
        # Strictly increasing so joined_at/created_at keep insertion order.
        value = self.clock()
        last = getattr(self, "_last_stamp", 0)
        if value <= last:
            value = last + 1
        self._last_stamp = value
        return value

    async def create_room(
        self,
        room_settings: RoomSettings,
        host_name: str,
        *,
        is_spectator: bool = False,
    ) -> tuple[str, str]:
        self._ensure_available()
        name = sanitize_player_name(host_name)
        async with self._lock:
            room_code = ""
            for _ in range(24):
                candidate = random_room_code()
                if candidate not in self._rooms:
                    room_code = candidate
                    break
            if not room_code:
                raise RuntimeError("Failed to allocate room code")

            host_id = random_id()
            room = Room(
                code=room_code,
                host_id=host_id,
                game_mode=room_settings.game_mode,
                difficulty=room_settings.difficulty,
                max_rounds=room_settings.max_rounds,
                lives_per_player=room_settings.lives_per_player,
                points_per_word=room_settings.points_per_word,
                created_at=self._stamp(),
            )
            host = Player(
                id=host_id,
                room_code=room_code,
                name=name or "Host",
                is_host=True,
                is_spectator=is_spectator,
                lives=room_settings.lives_per_player,
                joined_at=self._stamp(),
            )
            self._rooms[room_code] = room
            self._players[host_id] = host
            self._answers[room_code] = []
            self._chat[room_code] = []

        self._emit("room", room_code, room)
        self._emit("players", room_code, host)
        return room_code, host_id

    async def get_room(self, room_code: str) -> Room | None:
        self._ensure_available()
        room = self._rooms.get(sanitize_room_code(room_code))
        return copy.deepcopy(room) if room else None

    async def update_room(self, room_code: str, **changes: Any) -> Room:
        self._ensure_available()
        unknown = set(changes) - ROOM_FIELDS
        if unknown:
            raise ValueError(f"Unknown room fields: {sorted(unknown)}")
        room = self._require_room(room_code)
        updated = replace(room, **changes)
        self._rooms[room.code] = updated
        self._emit("room", room.code, updated)
        return copy.deepcopy(updated)

    async def join_room(self, room_code: str, name: str) -> tuple[str, GameMode]:
        self._ensure_available()
        code = sanitize_room_code(room_code)
        player_name = sanitize_player_name(name)
        async with self._lock:
            room = self._rooms.get(code)
            self._check_join(room, self._active_players(code), player_name)
            assert room is not None
            player = Player(
                id=random_id(),
                room_code=code,
                name=player_name,
                lives=room.lives_per_player or 3,
                joined_at=self._stamp(),
            )
            self._players[player.id] = player
        self._emit("players", code, player)
        return player.id, room.game_mode

    async def add_player(self, player: Player) -> Player:
        self._ensure_available()
        room = self._require_room(player.room_code)
        stored = replace(player, room_code=room.code, joined_at=player.joined_at or self._stamp())
        self._players[stored.id] = stored
        self._emit("players", room.code, stored)
        return copy.deepcopy(stored)

    async def get_player(self, player_id: str) -> Player | None:
        self._ensure_available()
        player = self._players.get(player_id)
        return copy.deepcopy(player) if player else None

    async def list_active_players(self, room_code: str) -> list[Player]:
        self._ensure_available()
        return copy.deepcopy(self._active_players(sanitize_room_code(room_code)))

    async def update_player(self, player_id: str, **changes: Any) -> Player:
        self._ensure_available()
        unknown = set(changes) - PLAYER_FIELDS
        if unknown:
            raise ValueError(f"Unknown player fields: {sorted(unknown)}")
        player = self._require_player(player_id)
        updated = replace(player, **changes)
        self._players[player_id] = updated
        self._emit("players", updated.room_code, updated)
        return copy.deepcopy(updated)

    async def increment_player_score(self, player_id: str, points: int) -> int:
        self._ensure_available()
        player = self._require_player(player_id)
        player.score += int(points)
        self._emit("players", player.room_code, player)
        return player.score

    async def get_round_state(self, room_code: str) -> RoundState | None:
        self._ensure_available()
        state = self._rounds.get(sanitize_room_code(room_code))
        return copy.deepcopy(state) if state else None

    async def publish_round_state(
        self,
        room_code: str,
        combo: str,
        round_number: int,
        *,
        round_start_time: int | None = None,
    ) -> RoundState:
        self._ensure_available()
        room = self._require_room(room_code)
        current = self._rounds.get(room.code)
        if current is not None and round_number < current.round_number:
            raise StaleRoundAction(round_number, current.round_number)
        if current is not None and round_number == current.round_number and combo.upper() != current.current_combo:
            # Only the start time of a live round may be republished.
            raise StaleRoundAction(round_number, current.round_number)

        state = RoundState(
            room_code=room.code,
            round_number=int(round_number),
            current_combo=combo.upper(),
            time_limit=time_limit_for_difficulty(room.difficulty),
            round_start_time=round_start_time if round_start_time is not None else self.clock(),
        )
        self._rounds[room.code] = state
        self._rooms[room.code] = replace(room, current_round=state.round_number)
        self._emit("round", room.code, state)
        self._emit("room", room.code, self._rooms[room.code])
        return copy.deepcopy(state)

    async def record_answer(
        self,
        room_code: str,
        player_id: str,
        round_number: int,
        word: str,
        points: int,
        time_taken: float,
    ) -> Answer:
        self._ensure_available()
        room = self._require_room(room_code)
        answers = self._answers.setdefault(room.code, [])
        if any(item.player_id == player_id and item.round_number == round_number for item in answers):
            raise DuplicateAnswer()
        answer = Answer(
            room_code=room.code,
            player_id=player_id,
            round_number=int(round_number),
            word=word.strip().lower(),
            points=int(points),
            time_taken=round(float(time_taken), 3),
            submitted_at=self._stamp(),
        )
        answers.append(answer)
        self._emit("answers", room.code, answer)
        return copy.deepcopy(answer)

    async def list_round_answers(self, room_code: str, round_number: int) -> list[Answer]:
        self._ensure_available()
        answers = self._answers.get(sanitize_room_code(room_code), [])
        return copy.deepcopy([item for item in answers if item.round_number == round_number])

    async def send_chat_message(
        self,
        room_code: str,
        player_id: str | None,
        player_name: str,
        message: str,
        is_system_message: bool = False,
    ) -> ChatMessage:
        self._ensure_available()
        room = self._require_room(room_code)
        chat_message = ChatMessage(
            id=random_id(),
            room_code=room.code,
            player_id=player_id,
            player_name=player_name,
            message=message,
            is_system_message=is_system_message,
            created_at=self._stamp(),
        )
        self._chat.setdefault(room.code, []).append(chat_message)
        self._emit("chat", room.code, chat_message)
        return copy.deepcopy(chat_message)

    async def list_chat_messages(self, room_code: str, limit: int = 50) -> list[ChatMessage]:
        self._ensure_available()
        messages = self._chat.get(sanitize_room_code(room_code), [])
        return copy.deepcopy(messages[-max(1, int(limit)):])
