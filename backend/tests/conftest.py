import asyncio
import os
import random
import sys

import pytest

# Ensure the backend root (containing the `wordbomb` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from wordbomb.dictionary import WordDictionary
from wordbomb.store_memory import MemoryRoomStore

TEST_WORDS = (
    'bakery', 'mountain', 'water', 'tiger', 'thunder', 'wonderful', 'everything',
    'here', 'over', 'silver', 'butterfly', 'interesting', 'computer', 'other',
    'that', 'this', 'three', 'weather', 'brother', 'mother', 'finger', 'ring',
    'king', 'thing', 'string', 'strong', 'stone', 'master', 'faster', 'france',
)

START_MS = 1_700_000_000_000


class FakeClock:
    def __init__(self, start=START_MS):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += int(round(seconds * 1000))


class FixedRandom(random.Random):
    """Seeded generator whose ``random()`` always returns ``value``."""

    def __init__(self, value=0.5, seed=7):
        super().__init__(seed)
        self.value = value

    def random(self):
        return self.value


async def instant_sleep(_delay):
    await asyncio.sleep(0)


async def settle(store, rounds=3):
    # Let notification tasks (and anything they schedule) run.
    for _ in range(rounds):
        await store.feed.drain()
        await asyncio.sleep(0)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def dictionary():
    return WordDictionary(words=TEST_WORDS)


@pytest.fixture()
def store(clock):
    return MemoryRoomStore(clock=clock)
