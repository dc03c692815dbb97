from __future__ import annotations

import logging

from .errors import InvalidChatMessage
from .game_constants import MAX_CHAT_MESSAGE_LENGTH, SYSTEM_PLAYER_NAME
from .game_types import ChatMessage, Player
from .store import RoomStore

logger = logging.getLogger(__name__)


def clean_chat_message(raw: str | None) -> str:
    message = str(raw or "").strip()
    if not message:
        raise InvalidChatMessage()
    return message[:MAX_CHAT_MESSAGE_LENGTH]


async def send_player_message(store: RoomStore, player: Player, raw: str | None) -> ChatMessage:
    return await store.send_chat_message(
        player.room_code,
        player.id,
        player.name,
        clean_chat_message(raw),
        is_system_message=False,
    )


async def send_system_message(store: RoomStore, room_code: str, text: str) -> ChatMessage | None:
    """Post a ``System`` line. Failures are logged and never reach the caller."""
    try:
        return await store.send_chat_message(
            room_code,
            None,
            SYSTEM_PLAYER_NAME,
            clean_chat_message(text),
            is_system_message=True,
        )
    except Exception:
        logger.exception("Failed to post system message to room %s", room_code)
        return None
