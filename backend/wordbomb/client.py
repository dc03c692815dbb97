"""One player's view of a multiplayer room.

A ``GameClient`` keeps the round synchronizer state for its player and feeds
it from two sources: store change notifications and a periodic poll that
backs them up when notifications are lost. Both land in the same ingestion
methods. When the player is the room's host the client also sequences rounds
through ``HostRoundController`` and schedules bot answers.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable

from .answers import submit_round_word
from .bot_simulator import BotAnswerSimulator
from .combo_picker import ComboPicker
from .dictionary import WordDictionary
from .errors import PlayerNotFound, RoomNotFound, StoreUnavailable
from .game_constants import POLL_INTERVAL_MS, RESULTS_COUNTDOWN_TICKS, TICK_INTERVAL_MS
from .game_types import Answer, Player, Room, RoundState
from .game_utils import now_ms
from .host_controller import HostRoundController
from .round_authority import HostRoundAuthority, RoundAuthority
from .round_sync import (
    RoundSyncState,
    begin_results,
    expire_if_elapsed,
    mark_answered,
    on_answer_notification,
    on_round_payload,
    resync_time,
    tick,
    tick_results,
)
from .store import RoomStore, Subscription
from .word_validation import ValidationReason, ValidationResult, normalize_word

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class GameClient:
    def __init__(
        self,
        store: RoomStore,
        dictionary: WordDictionary,
        room_code: str,
        player_id: str,
        *,
        clock: Callable[[], int] = now_ms,
        sleep: Sleeper = asyncio.sleep,
        authority: RoundAuthority | None = None,
        picker: ComboPicker | None = None,
        bot_rng: random.Random | None = None,
        tick_interval_ms: int = TICK_INTERVAL_MS,
        poll_interval_ms: int = POLL_INTERVAL_MS,
        results_countdown_ticks: int = RESULTS_COUNTDOWN_TICKS,
    ) -> None:
        self.store = store
        self.dictionary = dictionary
        self.room_code = room_code.upper()
        self.player_id = player_id
        self.clock = clock
        self.sleep = sleep
        self.authority = authority or HostRoundAuthority()
        self.picker = picker
        self.bot_rng = bot_rng
        self.tick_interval_ms = tick_interval_ms
        self.poll_interval_ms = poll_interval_ms
        self.results_countdown_ticks = results_countdown_ticks

        self.sync = RoundSyncState()
        self.room: Room | None = None
        self.player: Player | None = None
        self.controller: HostRoundController | None = None
        self.bots: BotAnswerSimulator | None = None
        self.finished = asyncio.Event()

        self._lock = asyncio.Lock()
        self._results_elapsed = 0.0
        self._subscriptions: list[Subscription] = []
        self._tasks: list[asyncio.Task[None]] = []
        self._closed = False

    @property
    def is_host(self) -> bool:
        return self.controller is not None

    @property
    def is_paused(self) -> bool:
        return self.room is not None and self.room.status == "paused"

    async def start(self, *, run_loops: bool = True) -> None:
        room = await self.store.get_room(self.room_code)
        if room is None:
            raise RoomNotFound(self.room_code)
        player = await self.store.get_player(self.player_id)
        if player is None or player.room_code != room.code:
            raise PlayerNotFound(self.player_id)
        self.room = room
        self.player = player

        if self.authority.can_advance(room, self.player_id):
            self.controller = HostRoundController(
                self.store,
                self.room_code,
                self.player_id,
                authority=self.authority,
                picker=self.picker,
                clock=self.clock,
            )
            self.bots = BotAnswerSimulator(
                self.store,
                self.dictionary,
                self.room_code,
                rng=self.bot_rng,
                sleep=self.sleep,
                clock=self.clock,
            )

        self._subscriptions = [
            self.store.subscribe_round_state(self.room_code, self.ingest_round_payload),
            self.store.subscribe_answers(self.room_code, self.ingest_answer),
            self.store.subscribe_room(self.room_code, self.ingest_room),
        ]
        await self.poll_once()
        if run_loops and not self.finished.is_set():
            self._tasks = [
                asyncio.create_task(self._tick_loop(), name=f"{self.room_code}:{self.player_id}:tick"),
                asyncio.create_task(self._poll_loop(), name=f"{self.room_code}:{self.player_id}:poll"),
            ]

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._unsubscribe()
        current = asyncio.current_task()
        tasks = [task for task in self._tasks if task is not current]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks = []

    def _unsubscribe(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

    def _mark_finished(self) -> None:
        if self.finished.is_set():
            return
        self.finished.set()
        self._unsubscribe()
        logger.info("Client %s saw room %s finish", self.player_id, self.room_code)

    async def ingest_round_payload(self, payload: RoundState) -> None:
        """Apply a round row observed through either the subscription or the poll."""
        if self.finished.is_set():
            return
        async with self._lock:
            updated = on_round_payload(self.sync, payload, self.clock(), self._paused_remaining(payload))
            if updated is self.sync:
                return
            self.sync = updated
            self._results_elapsed = 0.0
            await self._reconcile_answers(payload.round_number)
            self.sync, expired = expire_if_elapsed(self.sync)

        if self.controller is not None:
            if payload.current_combo not in self.controller.picker.recent:
                self.controller.picker.remember([payload.current_combo])
            if self.bots is not None and not expired:
                try:
                    await self.bots.schedule_round(payload)
                except StoreUnavailable:
                    logger.warning("Could not schedule bots for room %s round %s", self.room_code, payload.round_number)
        if expired:
            await self._on_local_timeout(payload.round_number)

    async def _reconcile_answers(self, round_number: int) -> None:
        try:
            answers = await self.store.list_round_answers(self.room_code, round_number)
        except StoreUnavailable:
            logger.warning("Could not load answers for room %s round %s", self.room_code, round_number)
            return
        for answer in answers:
            self._apply_answer(answer)

    def _apply_answer(self, answer: Answer) -> None:
        self.sync = on_answer_notification(self.sync, answer)
        if answer.player_id == self.player_id and answer.round_number == self.sync.round_number:
            self.sync = mark_answered(self.sync)

    async def ingest_answer(self, answer: Answer) -> None:
        async with self._lock:
            self._apply_answer(answer)

    def _paused_remaining(self, payload: RoundState) -> float | None:
        room = self.room
        if room is None or room.status != "paused" or room.paused_time_remaining is None:
            return None
        if room.current_round != payload.round_number:
            return None
        return room.paused_time_remaining

    async def ingest_room(self, room: Room) -> None:
        previous = self.room
        self.room = room
        if room.status == "finished":
            self._mark_finished()
        elif room.status == "playing" and previous is not None and previous.status == "paused":
            await self._resync_after_resume()

    async def _resync_after_resume(self) -> None:
        # The host republishes the live round with a shifted start before unpausing.
        try:
            payload = await self.store.get_round_state(self.room_code)
        except StoreUnavailable:
            logger.warning("Could not resync room %s after resume", self.room_code)
            return
        if payload is None:
            return
        async with self._lock:
            updated = resync_time(self.sync, payload, self.clock())
            if updated is self.sync:
                return
            if updated.showing_results != self.sync.showing_results:
                self._results_elapsed = 0.0
            self.sync, expired = expire_if_elapsed(updated)
        if expired:
            await self._on_local_timeout(payload.round_number)

    async def poll_once(self) -> None:
        if self.finished.is_set():
            return
        try:
            room = await self.store.get_room(self.room_code)
            if room is None:
                logger.warning("Room %s disappeared", self.room_code)
                return
            await self.ingest_room(room)
            if self.finished.is_set():
                return
            state = await self.store.get_round_state(self.room_code)
        except StoreUnavailable:
            logger.warning("Poll failed for room %s", self.room_code)
            return
        if state is not None:
            await self.ingest_round_payload(state)

        # A host timeout that could not be written is retried on the next poll.
        if (
            self.controller is not None
            and self.sync.round_number is not None
            and self.sync.timed_out
            and not self.sync.showing_results
            and not self.is_paused
        ):
            await self._on_local_timeout(self.sync.round_number)

    async def tick_once(self, delta_seconds: float) -> None:
        if self.finished.is_set() or self.is_paused:
            return
        timed_out_round: int | None = None
        advance_from: int | None = None
        async with self._lock:
            if self.sync.showing_results:
                self._results_elapsed += delta_seconds
                while self._results_elapsed >= 1.0 and self.sync.countdown > 0:
                    self._results_elapsed -= 1.0
                    self.sync, reached_zero = tick_results(self.sync)
                    if reached_zero:
                        advance_from = self.sync.round_number
            else:
                self.sync, fired = tick(self.sync, delta_seconds)
                if fired:
                    timed_out_round = self.sync.round_number

        if timed_out_round is not None:
            await self._on_local_timeout(timed_out_round)
        if advance_from is not None and self.controller is not None:
            await self._advance(advance_from)

    async def _on_local_timeout(self, round_number: int) -> None:
        if self.controller is None:
            async with self._lock:
                if self.sync.round_number == round_number:
                    self.sync = begin_results(self.sync, self.results_countdown_ticks)
            return

        try:
            outcome = await self.controller.on_round_timeout(round_number)
        except StoreUnavailable:
            logger.warning("Round %s timeout not recorded for room %s, will retry", round_number, self.room_code)
            return
        if outcome == "finished":
            self._mark_finished()
        elif outcome == "results":
            async with self._lock:
                if self.sync.round_number == round_number:
                    self.sync = begin_results(self.sync, self.results_countdown_ticks)
                    self._results_elapsed = 0.0

    async def _advance(self, from_round: int) -> None:
        assert self.controller is not None
        try:
            state = await self.controller.advance_round(from_round)
        except StoreUnavailable:
            logger.warning("Could not advance room %s past round %s", self.room_code, from_round)
            return
        if state is not None:
            await self.ingest_round_payload(state)
            return
        room = await self.store.get_room(self.room_code)
        if room is not None:
            await self.ingest_room(room)

    async def submit_word(self, word: str) -> ValidationResult:
        candidate = normalize_word(word)
        async with self._lock:
            sync = self.sync
        if sync.round_number is None or not sync.is_active or self.is_paused:
            return ValidationResult.rejected(ValidationReason.ROUND_CLOSED, "Round is over!", candidate)
        if sync.has_answered:
            return ValidationResult.rejected(
                ValidationReason.ALREADY_ANSWERED,
                "You already answered this round!",
                candidate,
            )

        try:
            room = await self.store.get_room(self.room_code)
            player = await self.store.get_player(self.player_id)
            current = await self.store.get_round_state(self.room_code)
        except StoreUnavailable:
            return ValidationResult.rejected(
                ValidationReason.SUBMIT_FAILED,
                "Could not submit your word, try again!",
                candidate,
            )
        if room is None or player is None or current is None or current.round_number != sync.round_number:
            return ValidationResult.rejected(ValidationReason.ROUND_CLOSED, "Round is over!", candidate)

        time_taken = max(0.0, sync.time_limit - sync.time_left)
        result = await submit_round_word(
            self.store,
            self.dictionary,
            room,
            player,
            current,
            candidate,
            time_taken,
            now=self.clock(),
        )
        if result.valid or result.reason == ValidationReason.ALREADY_ANSWERED:
            async with self._lock:
                if self.sync.round_number == current.round_number:
                    self.sync = mark_answered(self.sync)
        return result

    async def pause(self) -> Room | None:
        if self.controller is None:
            return None
        room = await self.controller.pause(self.sync.time_left)
        if room is not None:
            await self.ingest_room(room)
        return room

    async def resume(self) -> Room | None:
        if self.controller is None:
            return None
        room = await self.controller.resume()
        if room is not None:
            await self.ingest_room(room)
        return room

    async def skip_round(self) -> RoundState | None:
        if self.controller is None or self.sync.round_number is None:
            return None
        state = await self.controller.skip_round(self.sync.round_number)
        if state is not None:
            await self.ingest_round_payload(state)
        else:
            await self.poll_once()
        return state

    async def end_game(self) -> None:
        if self.controller is None:
            return
        await self.controller.end_game()
        self._mark_finished()

    async def _tick_loop(self) -> None:
        interval = self.tick_interval_ms / 1000
        last = self.clock()
        while not self.finished.is_set():
            await self.sleep(interval)
            now = self.clock()
            delta, last = (now - last) / 1000, now
            try:
                await self.tick_once(delta)
            except Exception:
                logger.exception("Tick failed for room %s", self.room_code)

    async def _poll_loop(self) -> None:
        interval = self.poll_interval_ms / 1000
        while not self.finished.is_set():
            await self.sleep(interval)
            try:
                await self.poll_once()
            except Exception:
                logger.exception("Poll failed for room %s", self.room_code)
