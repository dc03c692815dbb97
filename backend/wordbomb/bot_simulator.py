from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, Iterable

from .answers import record_scored_answer
from .dictionary import WordDictionary
from .errors import DuplicateAnswer, StaleRoundAction, StoreUnavailable
from .game_constants import BOT_FALLBACK_MIN_WORD_LENGTH, BOT_PROFILES, BotProfile
from .game_types import Player, RoundState
from .game_utils import now_ms
from .store import RoomStore
from .word_validation import normalize_word, validate_word

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


def choose_bot_word(
    words: Iterable[str],
    combo: str,
    profile: BotProfile,
    used_words: Iterable[str],
    rng: random.Random | None = None,
) -> str | None:
    """Pick a word a bot of ``profile`` would type for ``combo``.

    Prefers the profile's length band and falls back to any unused word of at
    least four letters containing the combo.
    """
    rng = rng or random.Random()
    needle = combo.strip().lower()
    used = {normalize_word(word) for word in used_words}
    matching = sorted(word for word in words if needle in word and word not in used)
    sized = [
        word
        for word in matching
        if profile.min_word_length <= len(word) <= profile.max_word_length
    ]
    if sized:
        return rng.choice(sized)
    fallback = [word for word in matching if len(word) >= BOT_FALLBACK_MIN_WORD_LENGTH]
    if fallback:
        return rng.choice(fallback)
    return None


class BotAnswerSimulator:
    """Schedules bot answers for the host.

    Each bot gets at most one attempt per round. Pending attempts are never
    cancelled; when one fires it re-reads the round and drops itself if the
    room has moved on.
    """

    def __init__(
        self,
        store: RoomStore,
        dictionary: WordDictionary,
        room_code: str,
        *,
        rng: random.Random | None = None,
        sleep: Sleeper = asyncio.sleep,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.store = store
        self.dictionary = dictionary
        self.room_code = room_code.upper()
        self.rng = rng or random.Random()
        self.sleep = sleep
        self.clock = clock
        self._scheduled: set[tuple[str, int]] = set()
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def schedule_round(self, round_state: RoundState) -> int:
        players = await self.store.list_active_players(self.room_code)
        scheduled = 0
        for bot in players:
            if not bot.is_bot or bot.is_spectator:
                continue
            key = (bot.id, round_state.round_number)
            if key in self._scheduled:
                continue
            self._scheduled.add(key)

            profile = BOT_PROFILES.get(bot.bot_difficulty or "medium", BOT_PROFILES["medium"])
            if self.rng.random() < profile.failure_rate:
                logger.info("Bot %s sits out round %s", bot.name, round_state.round_number)
                continue
            delay = self.rng.uniform(profile.min_delay, profile.max_delay)
            task = asyncio.create_task(
                self._answer_later(bot, round_state, profile, delay),
                name=f"{self.room_code}:bot:{bot.id}:{round_state.round_number}",
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            scheduled += 1
        self._forget_before(round_state.round_number)
        return scheduled

    def _forget_before(self, round_number: int) -> None:
        self._scheduled = {key for key in self._scheduled if key[1] >= round_number}

    async def _answer_later(self, bot: Player, round_state: RoundState, profile: BotProfile, delay: float) -> None:
        await self.sleep(delay)
        try:
            await self._answer(bot, round_state, profile)
        except (StaleRoundAction, DuplicateAnswer) as exc:
            logger.debug("Bot %s answer dropped: %s", bot.name, exc)
        except StoreUnavailable:
            logger.warning("Bot %s could not answer round %s, store unavailable", bot.name, round_state.round_number)
        except Exception:
            logger.exception("Bot %s failed to answer round %s", bot.name, round_state.round_number)

    async def _answer(self, bot: Player, round_state: RoundState, profile: BotProfile) -> None:
        current = await self.store.get_round_state(self.room_code)
        if current is None or current.round_number != round_state.round_number:
            return
        room = await self.store.get_room(self.room_code)
        if room is None or room.status != "playing":
            return

        answers = await self.store.list_round_answers(self.room_code, round_state.round_number)
        if any(answer.player_id == bot.id for answer in answers):
            return
        used_words = [answer.word for answer in answers]
        word = choose_bot_word(self.dictionary.words, current.current_combo, profile, used_words, self.rng)
        if word is None:
            logger.info("Bot %s found no word for %s", bot.name, current.current_combo)
            return

        result = validate_word(
            word,
            current.current_combo,
            used_words,
            self.dictionary,
            multiplayer=True,
            points_per_word=room.points_per_word,
        )
        if not result.valid:
            logger.debug("Bot %s word %r rejected: %s", bot.name, word, result.reason.value)
            return

        time_taken = max(0.0, (self.clock() - current.round_start_time) / 1000)
        await record_scored_answer(
            self.store,
            self.room_code,
            bot.id,
            current.round_number,
            result.word,
            result.points,
            time_taken,
        )
        logger.info("Bot %s answered %r for %s points", bot.name, result.word, result.points)

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
