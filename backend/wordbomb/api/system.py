from __future__ import annotations

from fastapi import APIRouter, Depends

from wordbomb.runtime import GameRuntime

from .deps import get_runtime

router = APIRouter(tags=["system"])


@router.get("/api/health")
async def health(runtime: GameRuntime = Depends(get_runtime)) -> dict[str, object]:
    return await runtime.health()


@router.get("/api/ws-stats")
async def websocket_stats(runtime: GameRuntime = Depends(get_runtime)) -> dict[str, object]:
    return {"ok": True, "stats": runtime.ws_stats}
