from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .combo_picker import ComboPicker
from .dictionary import WordDictionary
from .game_constants import SOLO_LIVES
from .game_types import Difficulty
from .game_utils import normalize_difficulty, time_limit_for_difficulty
from .word_validation import ValidationReason, ValidationResult, validate_word

logger = logging.getLogger(__name__)


@dataclass
class SoloState:
    difficulty: Difficulty = "medium"
    score: int = 0
    round_number: int = 1
    lives: int = SOLO_LIVES
    combo: str = ""
    time_limit: float = 10.0
    time_left: float = 10.0
    used_words: list[str] = field(default_factory=list)
    playing: bool = False

    @property
    def game_over(self) -> bool:
        return not self.playing and self.lives <= 0


class SoloGame:
    """Single-player loop: one combo at a time, three lives, no store involved."""

    def __init__(self, dictionary: WordDictionary, picker: ComboPicker | None = None) -> None:
        self.dictionary = dictionary
        self.picker = picker or ComboPicker()
        self.state = SoloState()

    def start(self, difficulty: Difficulty | str = "medium") -> SoloState:
        level = normalize_difficulty(difficulty)
        limit = time_limit_for_difficulty(level)
        self.state = SoloState(
            difficulty=level,
            combo=self.picker.draw(),
            time_limit=limit,
            time_left=limit,
            playing=True,
        )
        return self.state

    def _next_combo(self) -> None:
        self.state.combo = self.picker.draw()
        self.state.time_left = self.state.time_limit

    def submit(self, word: str) -> ValidationResult:
        if not self.state.playing:
            return ValidationResult.rejected(ValidationReason.ROUND_CLOSED, "Game is not running!")
        result = validate_word(word, self.state.combo, self.state.used_words, self.dictionary)
        if not result.valid:
            return result
        self.state.score += result.points
        self.state.used_words.append(result.word)
        self.state.round_number += 1
        self._next_combo()
        return result

    def tick(self, delta_seconds: float) -> bool:
        """Run the countdown. Returns True when the tick cost a life."""
        if not self.state.playing or delta_seconds <= 0:
            return False
        self.state.time_left -= delta_seconds
        if self.state.time_left > 0:
            return False

        self.state.time_left = 0.0
        self.state.lives -= 1
        if self.state.lives <= 0:
            self.state.playing = False
            logger.info("Solo game over: score %s after %s rounds", self.state.score, self.state.round_number)
        else:
            self._next_combo()
        return True
