from __future__ import annotations

import logging

from .dictionary import WordDictionary
from .errors import DuplicateAnswer, StoreUnavailable
from .game_types import Answer, Player, Room, RoundState
from .round_sync import remaining_seconds
from .store import RoomStore
from .word_validation import ValidationReason, ValidationResult, normalize_word, validate_word

logger = logging.getLogger(__name__)


async def record_scored_answer(
    store: RoomStore,
    room_code: str,
    player_id: str,
    round_number: int,
    word: str,
    points: int,
    time_taken: float,
) -> Answer:
    """Store an accepted word and credit its points.

    Humans and bots both go through here. The answer row is written first; if
    the score increment then fails the answer stands and the failure is only
    logged, so a player may briefly show a lower score than their answers add
    up to.
    """
    answer = await store.record_answer(room_code, player_id, round_number, word, points, time_taken)
    try:
        await store.increment_player_score(player_id, points)
    except Exception:
        logger.exception(
            "Score update failed for player %s in room %s round %s",
            player_id,
            room_code,
            round_number,
        )
    return answer


async def submit_round_word(
    store: RoomStore,
    dictionary: WordDictionary,
    room: Room,
    player: Player,
    round_state: RoundState,
    word: str,
    time_taken: float,
    *,
    now: int | None = None,
) -> ValidationResult:
    """Validate and record one multiplayer submission.

    Used words are the current round's answers as stored, so a word another
    player just took is rejected even if this client has not seen it yet.
    When ``now`` is given, a round whose time has run out is treated as closed.
    """
    candidate = normalize_word(word)
    if player.is_spectator:
        return ValidationResult.rejected(ValidationReason.SPECTATOR, "Spectators can't submit words!", candidate)
    if room.status != "playing" or round_state.round_number != room.current_round:
        return ValidationResult.rejected(ValidationReason.ROUND_CLOSED, "Round is over!", candidate)
    if now is not None and remaining_seconds(round_state, now) <= 0:
        return ValidationResult.rejected(ValidationReason.ROUND_CLOSED, "Round is over!", candidate)

    try:
        answers = await store.list_round_answers(room.code, round_state.round_number)
    except StoreUnavailable:
        logger.warning("Could not load answers for room %s round %s", room.code, round_state.round_number)
        return ValidationResult.rejected(
            ValidationReason.SUBMIT_FAILED,
            "Could not submit your word, try again!",
            candidate,
        )
    if any(answer.player_id == player.id for answer in answers):
        return ValidationResult.rejected(
            ValidationReason.ALREADY_ANSWERED,
            "You already answered this round!",
            candidate,
        )

    result = validate_word(
        candidate,
        round_state.current_combo,
        [answer.word for answer in answers],
        dictionary,
        multiplayer=True,
        points_per_word=room.points_per_word,
    )
    if not result.valid:
        return result

    try:
        await record_scored_answer(
            store,
            room.code,
            player.id,
            round_state.round_number,
            result.word,
            result.points,
            time_taken,
        )
    except DuplicateAnswer:
        return ValidationResult.rejected(
            ValidationReason.ALREADY_ANSWERED,
            "You already answered this round!",
            candidate,
        )
    except StoreUnavailable:
        logger.warning("Answer from %s in room %s was not stored", player.id, room.code)
        return ValidationResult.rejected(
            ValidationReason.SUBMIT_FAILED,
            "Could not submit your word, try again!",
            candidate,
        )
    return result
