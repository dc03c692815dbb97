from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


class DictionaryLoadError(RuntimeError):
    pass


class WordDictionary:
    """Preloaded set of lower-case words used for validation and bot picks.

    Lookups made before the list is loaded report the word as unknown.
    """

    def __init__(self, path: str | Path | None = None, words: Iterable[str] | None = None) -> None:
        self.path = Path(path) if path else None
        self._words: frozenset[str] | None = None
        self._load_task: asyncio.Task[frozenset[str]] | None = None
        if words is not None:
            self._words = _normalize_words(words)

    @property
    def loaded(self) -> bool:
        return self._words is not None

    @property
    def loading(self) -> bool:
        return self._load_task is not None and not self._load_task.done()

    @property
    def words(self) -> frozenset[str]:
        return self._words or frozenset()

    def status(self) -> dict[str, object]:
        return {
            "loaded": self.loaded,
            "loading": self.loading,
            "size": len(self._words) if self._words is not None else 0,
        }

    def contains(self, word: str) -> bool:
        if self._words is None:
            logger.warning("Dictionary lookup before load, rejecting %r", word)
            return False
        return word.strip().lower() in self._words

    def load_words(self, words: Iterable[str]) -> None:
        self._words = _normalize_words(words)

    async def load(self) -> frozenset[str]:
        if self._words is not None:
            return self._words
        if self._load_task is None or self._load_task.done():
            self._load_task = asyncio.create_task(self._read(), name="dictionary-load")
        task = self._load_task
        try:
            return await asyncio.shield(task)
        except DictionaryLoadError:
            if self._load_task is task:
                self._load_task = None
            raise

    async def _read(self) -> frozenset[str]:
        if self.path is None:
            raise DictionaryLoadError("Dictionary path is not configured")
        started = time.perf_counter()
        try:
            text = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        except OSError as exc:
            logger.exception("Failed to load dictionary from %s", self.path)
            raise DictionaryLoadError(f"Failed to load dictionary: {exc}") from exc

        words = _normalize_words(text.splitlines())
        self._words = words
        logger.info(
            "Dictionary loaded: %s words in %sms",
            len(words),
            round((time.perf_counter() - started) * 1000),
        )
        return words


def _normalize_words(words: Iterable[str]) -> frozenset[str]:
    return frozenset(
        cleaned for cleaned in (str(word or "").strip().lower() for word in words) if cleaned
    )
