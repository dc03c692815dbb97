from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Literal, TypeVar

Difficulty = Literal["easy", "medium", "hard"]
GameMode = Literal["free_for_all", "team_2", "team_3", "team_4"]
RoomStatus = Literal["waiting", "playing", "paused", "finished"]
Channel = Literal["room", "players", "round", "answers", "chat"]


@dataclass
class RoomSettings:
    game_mode: GameMode = "free_for_all"
    difficulty: Difficulty = "medium"
    max_rounds: int = 10
    lives_per_player: int = 3
    points_per_word: int = 50


@dataclass
class Room:
    code: str
    host_id: str
    game_mode: GameMode = "free_for_all"
    difficulty: Difficulty = "medium"
    max_rounds: int = 10
    lives_per_player: int = 3
    points_per_word: int = 50
    status: RoomStatus = "waiting"
    current_round: int = 0
    started_at: int | None = None
    finished_at: int | None = None
    is_paused: bool = False
    paused_time_remaining: float | None = None
    created_at: int = 0


@dataclass
class Player:
    id: str
    room_code: str
    name: str
    is_host: bool = False
    is_bot: bool = False
    bot_difficulty: Difficulty | None = None
    is_spectator: bool = False
    team_number: int | None = None
    score: int = 0
    lives: int = 3
    is_active: bool = True
    joined_at: int = 0


@dataclass
class RoundState:
    room_code: str
    round_number: int
    current_combo: str
    time_limit: float
    round_start_time: int


@dataclass
class Answer:
    room_code: str
    player_id: str
    round_number: int
    word: str
    points: int
    time_taken: float
    submitted_at: int = 0


@dataclass
class ChatMessage:
    id: str
    room_code: str
    player_id: str | None
    player_name: str
    message: str
    is_system_message: bool = False
    created_at: int = 0


@dataclass
class ChangeEvent:
    channel: Channel
    room_code: str
    payload: Any
    origin: str = ""
    extra: dict[str, Any] = field(default_factory=dict)


RecordT = TypeVar("RecordT")

RECORD_TYPES: dict[Channel, type] = {
    "room": Room,
    "players": Player,
    "round": RoundState,
    "answers": Answer,
    "chat": ChatMessage,
}


def record_to_dict(record: Any) -> dict[str, Any]:
    return asdict(record)


def record_from_dict(cls: type[RecordT], data: dict[str, Any]) -> RecordT:
    known = {item.name for item in fields(cls)}  # type: ignore[arg-type]
    return cls(**{key: value for key, value in data.items() if key in known})
