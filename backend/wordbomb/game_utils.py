from __future__ import annotations

import random
import re
import time
import uuid
from typing import Any, cast

from .game_constants import (
    DIFFICULTY_LEVELS,
    GAME_MODES,
    LENGTH_BONUS_BASELINE,
    LENGTH_BONUS_PER_LETTER,
    MAX_PLAYER_NAME_LENGTH,
    ROOM_CODE_CHARS,
    ROOM_CODE_LENGTH,
    TEAM_NAMES,
    TIME_LIMIT_SECONDS,
)
from .game_types import Difficulty, GameMode


def now_ms() -> int:
    return int(time.time() * 1000)


def random_id() -> str:
    return str(uuid.uuid4())


def random_room_code(length: int = ROOM_CODE_LENGTH) -> str:
    return "".join(random.choice(ROOM_CODE_CHARS) for _ in range(max(4, length)))


def sanitize_room_code(raw: str | None) -> str:
    value = (raw or "").strip().upper()
    filtered = "".join(ch for ch in value if ch.isalnum())
    return filtered[:ROOM_CODE_LENGTH]


def sanitize_player_name(raw: str | None) -> str:
    value = str(raw or "").strip()
    return re.sub(r"\s+", " ", value)[:MAX_PLAYER_NAME_LENGTH].strip()


def normalize_difficulty(value: Any) -> Difficulty:
    normalized = str(value or "").strip().lower()
    if normalized in DIFFICULTY_LEVELS:
        return cast(Difficulty, normalized)
    return "medium"


def normalize_game_mode(value: Any) -> GameMode:
    normalized = str(value or "").strip().lower()
    if normalized in {"vs_all", "ffa", "free-for-all"}:
        return "free_for_all"
    if normalized in GAME_MODES:
        return cast(GameMode, normalized)
    return "free_for_all"


def team_size_for_mode(game_mode: GameMode) -> int | None:
    if not game_mode.startswith("team_"):
        return None
    return int(game_mode.split("_", 1)[1])


def is_team_mode(game_mode: GameMode) -> bool:
    return team_size_for_mode(game_mode) is not None


def team_name(team_number: int) -> str:
    if 1 <= team_number <= len(TEAM_NAMES):
        return TEAM_NAMES[team_number - 1]
    return f"Team {team_number}"


def time_limit_for_difficulty(difficulty: Difficulty) -> float:
    return TIME_LIMIT_SECONDS.get(difficulty, TIME_LIMIT_SECONDS["medium"])


def solo_word_points(word: str) -> int:
    return max(10, len(word) * 5)


def multiplayer_word_points(word: str, points_per_word: int) -> int:
    bonus = max(0, (len(word) - LENGTH_BONUS_BASELINE) * LENGTH_BONUS_PER_LETTER)
    return int(points_per_word) + bonus


def clamp_int(value: Any, *, default: int, minimum: int, maximum: int) -> int:
    try:
        num = int(value)
    except (TypeError, ValueError):
        return default
    return max(minimum, min(maximum, num))


def team_count_for(game_mode: GameMode, player_count: int) -> int:
    team_size = team_size_for_mode(game_mode)
    if not team_size:
        return 0
    return min(len(TEAM_NAMES), max(2, player_count // team_size))
