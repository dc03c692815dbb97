from __future__ import annotations

from typing import Any

from .game_types import Answer, ChatMessage, Player, Room, RoundState
from .round_sync import remaining_seconds
from .scoring import PlayerStanding, TeamStanding
from .word_validation import ValidationResult


def room_payload(room: Room) -> dict[str, Any]:
    return {
        "code": room.code,
        "hostId": room.host_id,
        "gameMode": room.game_mode,
        "difficulty": room.difficulty,
        "maxRounds": room.max_rounds,
        "livesPerPlayer": room.lives_per_player,
        "pointsPerWord": room.points_per_word,
        "status": room.status,
        "currentRound": room.current_round,
        "startedAt": room.started_at,
        "finishedAt": room.finished_at,
        "isPaused": room.is_paused,
        "pausedTimeRemaining": room.paused_time_remaining,
        "createdAt": room.created_at,
    }


def player_payload(player: Player) -> dict[str, Any]:
    return {
        "id": player.id,
        "roomCode": player.room_code,
        "name": player.name,
        "isHost": player.is_host,
        "isBot": player.is_bot,
        "botDifficulty": player.bot_difficulty,
        "isSpectator": player.is_spectator,
        "teamNumber": player.team_number,
        "score": player.score,
        "lives": player.lives,
        "isActive": player.is_active,
        "joinedAt": player.joined_at,
    }


def round_payload(state: RoundState, now: int | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "roomCode": state.room_code,
        "roundNumber": state.round_number,
        "currentCombo": state.current_combo,
        "timeLimit": state.time_limit,
        "roundStartTime": state.round_start_time,
    }
    if now is not None:
        payload["timeLeft"] = round(remaining_seconds(state, now), 3)
    return payload


def answer_payload(answer: Answer) -> dict[str, Any]:
    return {
        "roomCode": answer.room_code,
        "playerId": answer.player_id,
        "roundNumber": answer.round_number,
        "word": answer.word,
        "points": answer.points,
        "timeTaken": answer.time_taken,
        "submittedAt": answer.submitted_at,
    }


def chat_payload(message: ChatMessage) -> dict[str, Any]:
    return {
        "id": message.id,
        "roomCode": message.room_code,
        "playerId": message.player_id,
        "playerName": message.player_name,
        "message": message.message,
        "isSystemMessage": message.is_system_message,
        "createdAt": message.created_at,
    }


def standing_payload(standing: PlayerStanding) -> dict[str, Any]:
    return {
        "place": standing.place,
        "playerId": standing.player_id,
        "name": standing.name,
        "score": standing.score,
        "teamNumber": standing.team_number,
        "isBot": standing.is_bot,
    }


def team_standing_payload(standing: TeamStanding) -> dict[str, Any]:
    return {
        "place": standing.place,
        "teamNumber": standing.team_number,
        "name": standing.name,
        "score": standing.score,
        "members": [standing_payload(member) for member in standing.members],
    }


def validation_payload(result: ValidationResult) -> dict[str, Any]:
    return {
        "valid": result.valid,
        "reason": result.reason.value,
        "message": result.message,
        "word": result.word,
        "points": result.points,
    }


CHANNEL_PAYLOADS = {
    "room": ("room", room_payload),
    "players": ("players", player_payload),
    "round": ("round", round_payload),
    "answers": ("answer", answer_payload),
    "chat": ("chat", chat_payload),
}
