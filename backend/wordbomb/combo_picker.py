from __future__ import annotations

import random
from collections import deque
from typing import Iterable, Sequence

from .game_constants import COMBO_RECENCY_WINDOW, LETTER_COMBOS


class ComboPicker:
    """Uniform draw from the prompt pool, skipping the last ``window`` draws."""

    def __init__(
        self,
        pool: Sequence[str] = LETTER_COMBOS,
        window: int = COMBO_RECENCY_WINDOW,
        rng: random.Random | None = None,
    ) -> None:
        if not pool:
            raise ValueError("Combo pool must not be empty")
        self.pool = tuple(combo.upper() for combo in pool)
        self.window = max(0, int(window))
        self._recent: deque[str] = deque(maxlen=self.window or None)
        self._rng = rng or random.Random()

    @property
    def recent(self) -> tuple[str, ...]:
        return tuple(self._recent)

    def remember(self, combos: Iterable[str]) -> None:
        if self.window == 0:
            return
        for combo in combos:
            if combo:
                self._recent.append(combo.upper())

    def draw(self) -> str:
        recent = set(self._recent)
        candidates = [combo for combo in self.pool if combo not in recent]
        if not candidates:
            candidates = list(self.pool)
        combo = self._rng.choice(candidates)
        if self.window:
            self._recent.append(combo)
        return combo
