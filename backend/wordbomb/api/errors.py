from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from wordbomb.errors import (
    DuplicateAnswer,
    GameAlreadyStarted,
    InvalidChatMessage,
    InvalidPlayerName,
    NameTaken,
    NotEnoughPlayers,
    NotRoomHost,
    NotTeamMode,
    PlayerNotFound,
    PlayersWithoutTeam,
    RoomFull,
    RoomNotFound,
    StaleRoundAction,
    StoreUnavailable,
    TeamFull,
    WordBombError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: tuple[tuple[type[WordBombError], int], ...] = (
    (RoomNotFound, 404),
    (PlayerNotFound, 404),
    (NotRoomHost, 403),
    (GameAlreadyStarted, 409),
    (NameTaken, 409),
    (RoomFull, 409),
    (TeamFull, 409),
    (DuplicateAnswer, 409),
    (StaleRoundAction, 409),
    (InvalidPlayerName, 400),
    (InvalidChatMessage, 400),
    (NotEnoughPlayers, 400),
    (PlayersWithoutTeam, 400),
    (NotTeamMode, 400),
    (StoreUnavailable, 503),
)


def status_for_error(exc: WordBombError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


async def word_bomb_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, WordBombError)
    status_code = status_for_error(exc)
    if status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


async def value_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WordBombError, word_bomb_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
