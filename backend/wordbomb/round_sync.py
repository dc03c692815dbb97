"""Per-client round synchronizer.

Every client (host included) keeps one ``RoundSyncState`` and moves it only
through the transition functions below. Round payloads reach a client over two
channels, the push subscription and the periodic poll; both must call
``on_round_payload`` so that the result does not depend on which channel won
the race or how many times the same row was observed.

Remaining time is always derived from the ``round_start_time`` published by
the host, never from the moment the payload arrived, so late or reconnecting
clients land on the host's clock.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .game_types import Answer, RoundState


@dataclass(frozen=True)
class RoundSyncState:
    round_number: int | None = None
    combo: str = ""
    time_left: float = 0.0
    time_limit: float = 0.0
    has_answered: bool = False
    round_answers: tuple[Answer, ...] = ()
    showing_results: bool = False
    countdown: int = 0
    last_applied_round: int | None = None
    timed_out: bool = False

    @property
    def is_active(self) -> bool:
        return self.round_number is not None and not self.timed_out and not self.showing_results

    @property
    def used_words(self) -> tuple[str, ...]:
        return tuple(answer.word for answer in self.round_answers)


def remaining_seconds(payload: RoundState, now_ms: int) -> float:
    elapsed = max(0.0, (now_ms - payload.round_start_time) / 1000)
    return max(0.0, float(payload.time_limit) - elapsed)


def on_round_payload(
    state: RoundSyncState,
    payload: RoundState,
    now_ms: int,
    paused_remaining: float | None = None,
) -> RoundSyncState:
    """Ingest a round row from either channel.

    Returns ``state`` itself when the payload carries a round that was already
    applied (or an older one), so callers can detect a no-op by identity.
    ``paused_remaining`` is the time the host froze when the room is paused;
    it replaces the value derived from ``round_start_time``.
    """
    last = state.last_applied_round
    if last is not None and payload.round_number <= last:
        return state

    if paused_remaining is not None:
        time_left = max(0.0, float(paused_remaining))
    else:
        time_left = remaining_seconds(payload, now_ms)
    if last is None:
        # Cold join: adopt the round as-is. Answer history for it is
        # reconciled separately by the caller.
        return replace(
            state,
            round_number=payload.round_number,
            combo=payload.current_combo,
            time_left=time_left,
            time_limit=float(payload.time_limit),
            last_applied_round=payload.round_number,
            timed_out=time_left <= 0,
        )

    return RoundSyncState(
        round_number=payload.round_number,
        combo=payload.current_combo,
        time_left=time_left,
        time_limit=float(payload.time_limit),
        has_answered=False,
        round_answers=(),
        showing_results=False,
        countdown=0,
        last_applied_round=payload.round_number,
        timed_out=time_left <= 0,
    )


def resync_time(state: RoundSyncState, payload: RoundState, now_ms: int) -> RoundSyncState:
    """Re-derive the countdown of the current round after the room resumes.

    Only time fields change; answers and ``has_answered`` stay as they are.
    A results screen that was entered early is left when time remains.
    """
    if state.round_number is None or payload.round_number != state.round_number:
        return state
    time_left = remaining_seconds(payload, now_ms)
    if state.showing_results:
        if time_left <= 0:
            return state
        return replace(state, time_left=time_left, timed_out=False, showing_results=False, countdown=0)
    return replace(state, time_left=time_left, timed_out=time_left <= 0)


def tick(state: RoundSyncState, delta_seconds: float) -> tuple[RoundSyncState, bool]:
    """Advance the round countdown.

    The second element is True exactly once per round: on the tick that takes
    ``time_left`` to zero or below.
    """
    if not state.is_active or delta_seconds <= 0:
        return state, False

    time_left = state.time_left - delta_seconds
    if time_left <= 0:
        return replace(state, time_left=0.0, timed_out=True), True
    return replace(state, time_left=time_left), False


def expire_if_elapsed(state: RoundSyncState) -> tuple[RoundSyncState, bool]:
    # A payload that arrives already expired never sees a crossing tick.
    if state.round_number is None or state.showing_results:
        return state, False
    if state.timed_out and state.time_left <= 0:
        return state, True
    return state, False


def on_answer_notification(state: RoundSyncState, answer: Answer) -> RoundSyncState:
    if state.round_number is None or answer.round_number != state.round_number:
        return state
    key = (answer.player_id, answer.word.lower())
    if any((item.player_id, item.word.lower()) == key for item in state.round_answers):
        return state
    return replace(state, round_answers=state.round_answers + (answer,))


def mark_answered(state: RoundSyncState) -> RoundSyncState:
    if state.has_answered:
        return state
    return replace(state, has_answered=True)


def begin_results(state: RoundSyncState, countdown_ticks: int) -> RoundSyncState:
    if state.round_number is None or state.showing_results:
        return state
    return replace(
        state,
        showing_results=True,
        countdown=max(0, int(countdown_ticks)),
        time_left=0.0,
        timed_out=True,
    )


def tick_results(state: RoundSyncState) -> tuple[RoundSyncState, bool]:
    """Count the results screen down by one tick.

    The second element is True only on the tick that reaches zero.
    """
    if not state.showing_results or state.countdown <= 0:
        return state, False
    countdown = state.countdown - 1
    return replace(state, countdown=countdown), countdown == 0

