"""Host-only round sequencer.

The host client owns every round transition: it publishes round 1, decides
what happens when its local countdown runs out, and publishes each following
round once the results countdown ends. Other clients only mirror what it
writes. There is no failover; if the host disappears the room stalls.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Callable, Literal

from .chat import send_system_message
from .combo_picker import ComboPicker
from .errors import StaleRoundAction
from .game_types import Room, RoundState
from .game_utils import now_ms
from .round_authority import HostRoundAuthority, RoundAuthority, ensure_round_authority
from .store import RoomStore

logger = logging.getLogger(__name__)

TimeoutOutcome = Literal["results", "finished", "ignored"]


class HostRoundController:
    def __init__(
        self,
        store: RoomStore,
        room_code: str,
        player_id: str,
        *,
        authority: RoundAuthority | None = None,
        picker: ComboPicker | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.store = store
        self.room_code = room_code.upper()
        self.player_id = player_id
        self.authority = authority or HostRoundAuthority()
        self.picker = picker or ComboPicker()
        self.clock = clock
        self._lock = asyncio.Lock()

    def _log_round_event(self, event: str, level: int = logging.INFO, **fields: object) -> None:
        logger.log(
            level,
            "round.%s %s",
            event,
            json.dumps({"room": self.room_code, **fields}, ensure_ascii=False, separators=(",", ":")),
        )

    async def _authorized_room(self) -> Room | None:
        room = await self.store.get_room(self.room_code)
        if room is None:
            self._log_round_event("room_missing", logging.WARNING)
            return None
        ensure_round_authority(self.authority, room, self.player_id)
        return room

    async def start_first_round(self) -> RoundState:
        room = await self._authorized_room()
        combo = self.picker.draw()
        state = await self.store.publish_round_state(self.room_code, combo, 1, round_start_time=self.clock())
        self._log_round_event("started", round=1, combo=combo, maxRounds=room.max_rounds if room else None)
        return state

    async def on_round_timeout(self, round_number: int) -> TimeoutOutcome:
        """Decide what follows the host's local timeout of ``round_number``."""
        async with self._lock:
            room = await self._authorized_room()
            if room is None or room.status == "finished":
                return "ignored"
            if round_number != room.current_round:
                self._log_round_event(
                    "timeout_stale",
                    logging.DEBUG,
                    round=round_number,
                    currentRound=room.current_round,
                )
                return "ignored"
            if round_number >= room.max_rounds:
                await self._finish(room)
                return "finished"
            self._log_round_event("results", round=round_number)
            return "results"

    async def advance_round(self, from_round: int) -> RoundState | None:
        """Publish ``from_round + 1``, or end the game after the last round.

        Calling it again for a round that has already been left is a no-op.
        """
        async with self._lock:
            room = await self._authorized_room()
            if room is None or room.status != "playing":
                return None
            current = await self.store.get_round_state(self.room_code)
            if current is not None and current.round_number != from_round:
                self._log_round_event(
                    "advance_stale",
                    logging.DEBUG,
                    fromRound=from_round,
                    currentRound=current.round_number,
                )
                return None
            if from_round >= room.max_rounds:
                await self._finish(room)
                return None

            combo = self.picker.draw()
            next_round = from_round + 1
            try:
                state = await self.store.publish_round_state(
                    self.room_code,
                    combo,
                    next_round,
                    round_start_time=self.clock(),
                )
            except StaleRoundAction as exc:
                self._log_round_event(
                    "advance_stale",
                    logging.DEBUG,
                    fromRound=from_round,
                    currentRound=exc.actual_round,
                )
                return None
            self._log_round_event("advanced", round=next_round, combo=combo)
            return state

    async def _finish(self, room: Room) -> None:
        await self.store.set_room_status(room.code, "finished", finished_at=self.clock(), is_paused=False)
        self._log_round_event("finished", round=room.current_round, maxRounds=room.max_rounds)

    async def end_game(self) -> None:
        async with self._lock:
            room = await self._authorized_room()
            if room is None or room.status == "finished":
                return
            await self._finish(room)
        await send_system_message(self.store, self.room_code, "Game ended by host")

    async def pause(self, time_left: float) -> Room | None:
        async with self._lock:
            room = await self._authorized_room()
            if room is None or room.status != "playing":
                return None
            remaining = max(0.0, float(time_left))
            updated = await self.store.set_room_status(
                self.room_code,
                "paused",
                is_paused=True,
                paused_time_remaining=remaining,
            )
            self._log_round_event("paused", round=room.current_round, timeLeft=remaining)
        await send_system_message(self.store, self.room_code, "Game paused by host")
        return updated

    async def resume(self) -> Room | None:
        """Unpause, republishing the live round so its countdown keeps what was left."""
        async with self._lock:
            room = await self._authorized_room()
            if room is None or room.status != "paused":
                return None
            current = await self.store.get_round_state(self.room_code)
            if current is not None:
                remaining = room.paused_time_remaining or 0.0
                elapsed_ms = int(max(0.0, current.time_limit - remaining) * 1000)
                await self.store.publish_round_state(
                    self.room_code,
                    current.current_combo,
                    current.round_number,
                    round_start_time=self.clock() - elapsed_ms,
                )
            updated = await self.store.set_room_status(
                self.room_code,
                "playing",
                is_paused=False,
                paused_time_remaining=None,
            )
            self._log_round_event("resumed", round=room.current_round)
        await send_system_message(self.store, self.room_code, "Game resumed by host")
        return updated

    async def skip_round(self, current_round: int) -> RoundState | None:
        state = await self.advance_round(current_round)
        await send_system_message(self.store, self.room_code, f"Round {current_round} skipped by host")
        return state
