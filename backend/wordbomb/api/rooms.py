from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from wordbomb.answers import submit_round_word
from wordbomb.errors import RoomNotFound
from wordbomb.game_utils import is_team_mode, now_ms, team_name
from wordbomb.payloads import (
    answer_payload,
    chat_payload,
    player_payload,
    room_payload,
    round_payload,
    standing_payload,
    team_standing_payload,
    validation_payload,
)
from wordbomb.round_authority import ensure_round_authority
from wordbomb.round_sync import remaining_seconds
from wordbomb.runtime import GameRuntime
from wordbomb.schemas.rooms import (
    AddBotRequest,
    AssignTeamsRequest,
    ChatMessageRequest,
    CreateRoomRequest,
    HostRequest,
    JoinRoomRequest,
    KickPlayerRequest,
    PlayerRequest,
    PublishRoundRequest,
    RoomStatusRequest,
    SelectTeamRequest,
    SubmitAnswerRequest,
)
from wordbomb.word_validation import ValidationReason, ValidationResult

from .deps import get_runtime

router = APIRouter(tags=["rooms"])


@router.post("/api/rooms/create")
async def create_room(payload: CreateRoomRequest, runtime: GameRuntime = Depends(get_runtime)) -> dict[str, object]:
    room_code, host_id = await runtime.require_rooms().create_room(
        payload.hostName,
        game_mode=payload.gameMode,
        difficulty=payload.difficulty,
        max_rounds=payload.maxRounds,
        lives_per_player=payload.livesPerPlayer,
        points_per_word=payload.pointsPerWord,
        is_spectator=payload.isSpectator,
    )
    return {"ok": True, "roomCode": room_code, "playerId": host_id}


@router.post("/api/rooms/{room_code}/join")
async def join_room(
    room_code: str,
    payload: JoinRoomRequest,
    runtime: GameRuntime = Depends(get_runtime),
) -> dict[str, object]:
    player_id, game_mode = await runtime.require_rooms().join_room(room_code, payload.name)
    return {"ok": True, "playerId": player_id, "gameMode": game_mode}


@router.get("/api/rooms/{room_code}")
async def get_room(room_code: str, runtime: GameRuntime = Depends(get_runtime)) -> dict[str, object]:
    room = await runtime.require_rooms().get_room(room_code)
    return {"ok": True, "room": room_payload(room)}


@router.get("/api/rooms/{room_code}/players")
async def list_players(room_code: str, runtime: GameRuntime = Depends(get_runtime)) -> dict[str, object]:
    players = await runtime.require_rooms().list_players(room_code)
    return {"ok": True, "players": [player_payload(player) for player in players]}


@router.get("/api/rooms/{room_code}/leaderboard")
async def leaderboard(room_code: str, runtime: GameRuntime = Depends(get_runtime)) -> dict[str, object]:
    rooms = runtime.require_rooms()
    room = await rooms.get_room(room_code)
    standings = await rooms.leaderboard(room.code)
    teams = await rooms.team_standings(room.code) if is_team_mode(room.game_mode) else []
    return {
        "ok": True,
        "gameMode": room.game_mode,
        "players": [standing_payload(standing) for standing in standings],
        "teams": [team_standing_payload(standing) for standing in teams],
    }


@router.get("/api/rooms/{room_code}/teams")
async def lobby_teams(room_code: str, runtime: GameRuntime = Depends(get_runtime)) -> dict[str, object]:
    rosters = await runtime.require_rooms().lobby_teams(room_code)
    waiting = rosters.pop(None, [])
    return {
        "ok": True,
        "teams": [
            {
                "teamNumber": team_number,
                "name": team_name(team_number),
                "players": [player_payload(player) for player in members],
            }
            for team_number, members in sorted(rosters.items(), key=lambda item: item[0] or 0)
            if team_number is not None
        ],
        "waiting": [player_payload(player) for player in waiting],
    }


@router.post("/api/rooms/{room_code}/teams/select")
async def select_team(
    room_code: str,
    payload: SelectTeamRequest,
    runtime: GameRuntime = Depends(get_runtime),
) -> dict[str, object]:
    rooms = runtime.require_rooms()
    await rooms.get_player(payload.playerId, room_code)
    player = await rooms.select_team(payload.playerId, payload.teamNumber)
    return {"ok": True, "player": player_payload(player)}


@router.post("/api/rooms/{room_code}/teams/leave")
async def leave_team(
    room_code: str,
    payload: PlayerRequest,
    runtime: GameRuntime = Depends(get_runtime),
) -> dict[str, object]:
    rooms = runtime.require_rooms()
    await rooms.get_player(payload.playerId, room_code)
    player = await rooms.leave_team(payload.playerId)
    return {"ok": True, "player": player_payload(player)}


@router.post("/api/rooms/{room_code}/teams/assign")
async def assign_teams(
    room_code: str,
    payload: AssignTeamsRequest,
    runtime: GameRuntime = Depends(get_runtime),
) -> dict[str, object]:
    rooms = runtime.require_rooms()
    await rooms.require_host(payload.hostId, room_code)
    players = await rooms.assign_teams(payload.hostId, shuffle=payload.shuffle)
    return {"ok": True, "players": [player_payload(player) for player in players]}


@router.post("/api/rooms/{room_code}/start")
async def start_game(
    room_code: str,
    payload: HostRequest,
    runtime: GameRuntime = Depends(get_runtime),
) -> dict[str, object]:
    rooms = runtime.require_rooms()
    await rooms.require_host(payload.hostId, room_code)
    controller = runtime.controller_for(room_code, payload.hostId)
    state = await rooms.start_game(payload.hostId, picker=controller.picker)
    return {"ok": True, "round": round_payload(state, now_ms())}


@router.post("/api/rooms/{room_code}/bots")
async def add_bot(
    room_code: str,
    payload: AddBotRequest,
    runtime: GameRuntime = Depends(get_runtime),
) -> dict[str, object]:
    rooms = runtime.require_rooms()
    await rooms.require_host(payload.hostId, room_code)
    bot = await rooms.add_bot(payload.hostId, payload.difficulty)
    return {"ok": True, "player": player_payload(bot)}


@router.delete("/api/rooms/{room_code}/bots")
async def remove_bots(
    room_code: str,
    hostId: str = Query(min_length=1, max_length=64),
    runtime: GameRuntime = Depends(get_runtime),
) -> dict[str, object]:
    rooms = runtime.require_rooms()
    await rooms.require_host(hostId, room_code)
    removed = await rooms.remove_all_bots(hostId)
    return {"ok": True, "removed": removed}


@router.post("/api/rooms/{room_code}/leave")
async def leave_room(
    room_code: str,
    payload: PlayerRequest,
    runtime: GameRuntime = Depends(get_runtime),
) -> dict[str, object]:
    rooms = runtime.require_rooms()
    await rooms.get_player(payload.playerId, room_code)
    await rooms.leave_room(payload.playerId)
    return {"ok": True}


@router.post("/api/rooms/{room_code}/kick")
async def kick_player(
    room_code: str,
    payload: KickPlayerRequest,
    runtime: GameRuntime = Depends(get_runtime),
) -> dict[str, object]:
    rooms = runtime.require_rooms()
    await rooms.require_host(payload.hostId, room_code)
    player = await rooms.kick_player(payload.hostId, payload.playerId)
    return {"ok": True, "player": player_payload(player)}


@router.get("/api/rooms/{room_code}/round")
async def get_round(room_code: str, runtime: GameRuntime = Depends(get_runtime)) -> dict[str, object]:
    store = runtime.require_store()
    room = await runtime.require_rooms().get_room(room_code)
    state = await store.get_round_state(room.code)
    return {
        "ok": True,
        "status": room.status,
        "round": round_payload(state, now_ms()) if state is not None else None,
    }


@router.post("/api/rooms/{room_code}/round")
async def publish_round(
    room_code: str,
    payload: PublishRoundRequest,
    runtime: GameRuntime = Depends(get_runtime),
) -> dict[str, object]:
    store = runtime.require_store()
    room = await runtime.require_rooms().get_room(room_code)
    ensure_round_authority(runtime.require_rooms().authority, room, payload.hostId)
    state = await store.publish_round_state(
        room.code,
        payload.combo,
        payload.roundNumber,
        round_start_time=payload.roundStartTime,
    )
    return {"ok": True, "round": round_payload(state, now_ms())}


@router.get("/api/rooms/{room_code}/answers")
async def list_answers(
    room_code: str,
    round_number: int | None = Query(default=None, alias="round", ge=1),
    runtime: GameRuntime = Depends(get_runtime),
) -> dict[str, object]:
    store = runtime.require_store()
    room = await runtime.require_rooms().get_room(room_code)
    target_round = round_number if round_number is not None else room.current_round
    answers = await store.list_round_answers(room.code, target_round) if target_round else []
    return {"ok": True, "round": target_round, "answers": [answer_payload(answer) for answer in answers]}


@router.post("/api/rooms/{room_code}/answers")
async def submit_answer(
    room_code: str,
    payload: SubmitAnswerRequest,
    runtime: GameRuntime = Depends(get_runtime),
) -> dict[str, object]:
    store = runtime.require_store()
    rooms = runtime.require_rooms()
    room = await rooms.get_room(room_code)
    player = await rooms.get_player(payload.playerId, room.code)
    state = await store.get_round_state(room.code)
    if state is None or (payload.roundNumber is not None and payload.roundNumber != state.round_number):
        result = ValidationResult.rejected(ValidationReason.ROUND_CLOSED, "Round is over!", payload.word.strip().lower())
    else:
        now = now_ms()
        if payload.timeTaken is not None:
            time_taken = payload.timeTaken
        else:
            time_taken = max(0.0, state.time_limit - remaining_seconds(state, now))
        result = await submit_round_word(
            store,
            runtime.dictionary,
            room,
            player,
            state,
            payload.word,
            time_taken,
            now=now,
        )
    return {"ok": result.valid, "result": validation_payload(result)}


@router.get("/api/rooms/{room_code}/chat")
async def chat_history(
    room_code: str,
    limit: int = Query(default=50, ge=1, le=200),
    runtime: GameRuntime = Depends(get_runtime),
) -> dict[str, object]:
    messages = await runtime.require_rooms().chat_history(room_code, limit=limit)
    return {"ok": True, "messages": [chat_payload(message) for message in messages]}


@router.post("/api/rooms/{room_code}/chat")
async def send_chat(
    room_code: str,
    payload: ChatMessageRequest,
    runtime: GameRuntime = Depends(get_runtime),
) -> dict[str, object]:
    rooms = runtime.require_rooms()
    await rooms.get_player(payload.playerId, room_code)
    message = await rooms.send_chat(payload.playerId, payload.message)
    return {"ok": True, "message": chat_payload(message)}


@router.post("/api/rooms/{room_code}/status")
async def room_status(
    room_code: str,
    payload: RoomStatusRequest,
    runtime: GameRuntime = Depends(get_runtime),
) -> dict[str, object]:
    rooms = runtime.require_rooms()
    room, _ = await rooms.require_host(payload.hostId, room_code)
    controller = runtime.controller_for(room.code, payload.hostId)

    if payload.action == "pause":
        time_left = payload.timeLeft
        if time_left is None:
            state = await runtime.require_store().get_round_state(room.code)
            time_left = remaining_seconds(state, now_ms()) if state is not None else 0.0
        await controller.pause(time_left)
    elif payload.action == "resume":
        await controller.resume()
    elif payload.action == "skip":
        await controller.skip_round(room.current_round)
    else:
        await controller.end_game()

    updated = await rooms.store.get_room(room.code)
    if updated is None:
        raise RoomNotFound(room.code)
    return {"ok": True, "room": room_payload(updated)}
