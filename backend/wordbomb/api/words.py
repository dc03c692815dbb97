from __future__ import annotations

from fastapi import APIRouter, Depends

from wordbomb.payloads import validation_payload
from wordbomb.runtime import GameRuntime
from wordbomb.schemas.rooms import ValidateWordRequest
from wordbomb.word_validation import validate_word

from .deps import get_runtime

router = APIRouter(tags=["words"])


@router.post("/api/words/validate")
async def validate(payload: ValidateWordRequest, runtime: GameRuntime = Depends(get_runtime)) -> dict[str, object]:
    result = validate_word(
        payload.word,
        payload.combo,
        payload.usedWords,
        runtime.dictionary,
        multiplayer=payload.multiplayer,
        points_per_word=payload.pointsPerWord,
    )
    return {"ok": result.valid, "result": validation_payload(result)}


@router.get("/api/words/status")
async def dictionary_status(runtime: GameRuntime = Depends(get_runtime)) -> dict[str, object]:
    return {"ok": True, **runtime.dictionary.status()}
