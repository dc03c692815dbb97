from __future__ import annotations

from fastapi import APIRouter, WebSocket

from .deps import get_ws_runtime

router = APIRouter(tags=["websocket"])


@router.websocket("/api/rooms/{room_code}/ws")
async def room_websocket(websocket: WebSocket, room_code: str) -> None:
    await get_ws_runtime(websocket).handle_websocket(websocket, room_code)
