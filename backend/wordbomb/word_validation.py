from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .dictionary import WordDictionary
from .game_constants import (
    BANNED_WORDS,
    DEFAULT_POINTS_PER_WORD,
    MULTIPLAYER_MIN_WORD_LENGTH,
    SOLO_MIN_WORD_LENGTH,
)
from .game_utils import multiplayer_word_points, solo_word_points

LETTERS_ONLY = re.compile(r"^[a-z]+$", re.IGNORECASE)


class ValidationReason(str, Enum):
    OK = "ok"
    TOO_SHORT = "too_short"
    MISSING_COMBO = "missing_combo"
    ALREADY_USED = "already_used"
    NOT_LETTERS = "not_letters"
    BANNED_WORD = "banned_word"
    DICTIONARY_NOT_LOADED = "dictionary_not_loaded"
    NOT_IN_DICTIONARY = "not_in_dictionary"
    ALREADY_ANSWERED = "already_answered"
    ROUND_CLOSED = "round_closed"
    SPECTATOR = "spectator"
    SUBMIT_FAILED = "submit_failed"


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: ValidationReason
    message: str
    word: str = ""
    points: int = 0

    @classmethod
    def rejected(cls, reason: ValidationReason, message: str, word: str = "") -> "ValidationResult":
        return cls(valid=False, reason=reason, message=message, word=word)


def normalize_word(word: str | None) -> str:
    return str(word or "").strip().lower()


def validate_word(
    word: str,
    required_combo: str,
    used_words: Iterable[str],
    dictionary: WordDictionary,
    *,
    multiplayer: bool = False,
    points_per_word: int = DEFAULT_POINTS_PER_WORD,
) -> ValidationResult:
    candidate = normalize_word(word)
    combo = required_combo.strip()
    min_length = MULTIPLAYER_MIN_WORD_LENGTH if multiplayer else SOLO_MIN_WORD_LENGTH

    if len(candidate) < min_length:
        return ValidationResult.rejected(
            ValidationReason.TOO_SHORT,
            f"Word must be at least {min_length} letters!",
            candidate,
        )

    if combo.lower() not in candidate:
        return ValidationResult.rejected(
            ValidationReason.MISSING_COMBO,
            f'Word must contain "{combo.upper()}"!',
            candidate,
        )

    if candidate in {normalize_word(used) for used in used_words}:
        return ValidationResult.rejected(ValidationReason.ALREADY_USED, "Word already used!", candidate)

    if not LETTERS_ONLY.match(candidate):
        return ValidationResult.rejected(
            ValidationReason.NOT_LETTERS,
            "Word must contain only letters!",
            candidate,
        )

    if candidate in BANNED_WORDS:
        return ValidationResult.rejected(
            ValidationReason.BANNED_WORD,
            "Country names are not allowed!",
            candidate,
        )

    if not dictionary.loaded:
        return ValidationResult.rejected(
            ValidationReason.DICTIONARY_NOT_LOADED,
            "Dictionary is still loading, try again!",
            candidate,
        )

    if not dictionary.contains(candidate):
        return ValidationResult.rejected(
            ValidationReason.NOT_IN_DICTIONARY,
            "Not a valid English word!",
            candidate,
        )

    points = (
        multiplayer_word_points(candidate, points_per_word)
        if multiplayer
        else solo_word_points(candidate)
    )
    return ValidationResult(
        valid=True,
        reason=ValidationReason.OK,
        message=f"+{points} points! Great word!",
        word=candidate,
        points=points,
    )
