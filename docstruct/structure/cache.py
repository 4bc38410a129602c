import hashlib
from typing import Any

_MISSING = object()


class MatchCache:
    """Per-run memo of pattern and heuristic decisions keyed by content hash."""

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}
        self._hits = 0
        self._misses = 0

    @staticmethod
    def key(namespace: str, text: str) -> str:
        digest = hashlib.md5(text.encode("utf-8"), usedforsecurity=False).hexdigest()
        return f"{namespace}:{digest}"

    def lookup(self, key: str) -> tuple[bool, Any]:
        value = self._entries.get(key, _MISSING)
        if value is _MISSING:
            self._misses += 1
            return False, None
        self._hits += 1
        return True, value

    def store(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def stats(self) -> dict[str, int]:
        return {"entries": len(self._entries), "hits": self._hits, "misses": self._misses}

    def __len__(self) -> int:
        return len(self._entries)
