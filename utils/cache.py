"""
LLM response caches.

The completion gateway maps exact prompt text to response text. Entries are
never modified once written, so one cache can safely back several concurrent
pipeline runs inside the same process.
"""

import json
import logging
import os
from collections import OrderedDict

from constants.llm import ENV_LLM_CACHE_FILE

logger = logging.getLogger("llm_logger")


class ResponseCache:
    """Interface for prompt -> response stores."""

    def get(self, prompt: str) -> str | None:
        raise NotImplementedError

    def set(self, prompt: str, response: str) -> None:
        raise NotImplementedError

    def __contains__(self, prompt: str) -> bool:
        return self.get(prompt) is not None


class MemoryCache(ResponseCache):
    """
    In-process cache. Unbounded by default; with max_entries set, the least
    recently used entry is evicted once the limit is exceeded.
    """

    def __init__(self, max_entries: int | None = None):
        self.max_entries = max_entries
        self._entries: OrderedDict[str, str] = OrderedDict()

    def get(self, prompt):
        response = self._entries.get(prompt)
        if response is not None:
            self._entries.move_to_end(prompt)
        return response

    def set(self, prompt, response):
        self._entries[prompt] = response
        self._entries.move_to_end(prompt)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self):
        return len(self._entries)


class JsonFileCache(ResponseCache):
    """
    Cache persisted as a JSON object on disk, reloaded on every access so
    separate processes pointed at the same file see each other's writes.
    """

    def __init__(self, path: str):
        self.path = path

    def load(self) -> dict:
        if os.path.exists(self.path):
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    return json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Failed to load cache {self.path}: {e}")
        return {}

    def save(self, entries: dict) -> None:
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(entries, f, indent=2)
        except OSError as e:
            logger.warning(f"Failed to save cache {self.path}: {e}")

    def get(self, prompt):
        return self.load().get(prompt)

    def set(self, prompt, response):
        entries = self.load()
        entries[prompt] = response
        self.save(entries)


# Process-wide default, shared by every pipeline run in this process
_default_cache: ResponseCache | None = None


def get_default_cache() -> ResponseCache:
    """Return the shared cache, creating it on first use."""
    global _default_cache
    if _default_cache is None:
        cache_path = os.getenv(ENV_LLM_CACHE_FILE)
        _default_cache = JsonFileCache(cache_path) if cache_path else MemoryCache()
    return _default_cache


def set_default_cache(cache: ResponseCache | None) -> None:
    """Replace the shared cache (None resets to lazy creation)."""
    global _default_cache
    _default_cache = cache
