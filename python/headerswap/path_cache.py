"""In-process cache of resolved swap pairs.

Not persistent: it lives as long as the process that owns it (the
sidecar keeps one for its whole lifetime, a single-shot run starts
empty). Both directions of a pair are stored so that swapping back
is a cache hit too.
"""

import os
from collections.abc import Callable


def normalize_key(path: str) -> str:
    """Canonical cache key: lower-cased, with redundant separators and dot segments collapsed."""
    return os.path.normpath(path.lower())


def _never_disabled() -> bool:
    return False


class PathCache:
    """Bidirectional dict cache keyed by normalized path."""

    def __init__(self, is_disabled: Callable[[], bool] = _never_disabled):
        self._is_disabled = is_disabled
        self._cache: dict[str, str] = {}

    def add(self, source_path: str, swapped_path: str) -> None:
        """Remember a pair in both directions, unless caching is disabled."""
        if self._is_disabled():
            return

        # Keys fold case; values keep the spelling needed to reopen the file.
        self._cache[normalize_key(source_path)] = os.path.normpath(swapped_path)
        self._cache[normalize_key(swapped_path)] = os.path.normpath(source_path)

    def remove(self, path: str) -> None:
        """Forget the entry for path and the reverse entry pointing back at it."""
        key = normalize_key(path)
        counterpart = self._cache.pop(key, None)
        if counterpart is None:
            return
        reverse_key = normalize_key(counterpart)
        reverse = self._cache.get(reverse_key)
        if reverse is not None and normalize_key(reverse) == key:
            del self._cache[reverse_key]

    def get(self, path: str) -> str | None:
        """Return the cached counterpart of path, or None on a miss or when disabled."""
        if self._is_disabled():
            return None
        return self._cache.get(normalize_key(path))

    def clear(self) -> None:
        """Clear all cached entries."""
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
