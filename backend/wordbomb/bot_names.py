from __future__ import annotations

import random
from typing import Iterable

from .game_constants import BOT_NAME_ADJECTIVES, BOT_NAME_ANIMALS, BOT_NAME_MAX_ATTEMPTS


def generate_bot_name(existing_names: Iterable[str] = (), rng: random.Random | None = None) -> str:
    rng = rng or random.Random()
    taken = set(existing_names)
    for _ in range(BOT_NAME_MAX_ATTEMPTS):
        name = f"{rng.choice(BOT_NAME_ADJECTIVES)}{rng.choice(BOT_NAME_ANIMALS)}"
        if name not in taken:
            return name
    while True:
        name = f"{rng.choice(BOT_NAME_ADJECTIVES)}{rng.choice(BOT_NAME_ANIMALS)}{rng.randrange(1000)}"
        if name not in taken:
            return name


def generate_bot_names(count: int, existing_names: Iterable[str] = (), rng: random.Random | None = None) -> list[str]:
    rng = rng or random.Random()
    taken = list(existing_names)
    names: list[str] = []
    for _ in range(max(0, count)):
        name = generate_bot_name(taken, rng)
        names.append(name)
        taken.append(name)
    return names
