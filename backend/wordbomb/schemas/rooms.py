from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from wordbomb.game_constants import MAX_CHAT_MESSAGE_LENGTH, MAX_PLAYER_NAME_LENGTH


class CreateRoomRequest(BaseModel):
    hostName: str = Field(min_length=1, max_length=MAX_PLAYER_NAME_LENGTH)
    gameMode: Literal["free_for_all", "team_2", "team_3", "team_4", "vs_all"] = Field(default="free_for_all")
    difficulty: Literal["easy", "medium", "hard"] = Field(default="medium")
    maxRounds: int = Field(default=10, ge=1, le=50)
    livesPerPlayer: int = Field(default=3, ge=1, le=10)
    pointsPerWord: int = Field(default=50, ge=1, le=1000)
    isSpectator: bool = False

    @field_validator("hostName")
    @classmethod
    def strip_host_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Name is required")
        return stripped


class JoinRoomRequest(BaseModel):
    name: str = Field(min_length=1, max_length=MAX_PLAYER_NAME_LENGTH)


class PlayerRequest(BaseModel):
    playerId: str = Field(min_length=1, max_length=64)


class HostRequest(BaseModel):
    hostId: str = Field(min_length=1, max_length=64)


class SelectTeamRequest(PlayerRequest):
    teamNumber: int = Field(ge=1, le=6)


class AssignTeamsRequest(HostRequest):
    shuffle: bool = True


class AddBotRequest(HostRequest):
    difficulty: Literal["easy", "medium", "hard"] = Field(default="medium")


class KickPlayerRequest(HostRequest):
    playerId: str = Field(min_length=1, max_length=64)


class PublishRoundRequest(HostRequest):
    combo: str = Field(min_length=1, max_length=8)
    roundNumber: int = Field(ge=1)
    roundStartTime: int | None = Field(default=None, ge=0)


class SubmitAnswerRequest(PlayerRequest):
    word: str = Field(max_length=64)
    roundNumber: int | None = Field(default=None, ge=1)
    timeTaken: float | None = Field(default=None, ge=0)


class ChatMessageRequest(PlayerRequest):
    message: str = Field(max_length=MAX_CHAT_MESSAGE_LENGTH * 2)


class RoomStatusRequest(HostRequest):
    action: Literal["pause", "resume", "skip", "end"]
    timeLeft: float | None = Field(default=None, ge=0)


class ValidateWordRequest(BaseModel):
    word: str = Field(max_length=64)
    combo: str = Field(min_length=1, max_length=8)
    usedWords: list[str] = Field(default_factory=list, max_length=500)
    multiplayer: bool = False
    pointsPerWord: int = Field(default=50, ge=1, le=1000)
