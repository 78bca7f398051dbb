"""
Path revalidation cache.

Listing pages are cached by their logical path and recomputed on the next
read after a write marks the path stale.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A cached rendering of one path."""
    value: Any
    created_at: datetime
    hits: int = 0


class PathCache:
    """
    In-process cache keyed by logical path.

    Confined to one event loop; entries live until `revalidate_path`
    drops them.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._revalidations: dict[str, int] = {}

    async def get_or_render(self, path: str, render: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value for `path`, rendering it on a miss."""
        entry = self._entries.get(path)
        if entry is not None:
            entry.hits += 1
            return entry.value

        value = await render()
        self._entries[path] = CacheEntry(value=value, created_at=datetime.now(timezone.utc))
        return value

    def is_cached(self, path: str) -> bool:
        return path in self._entries

    def revalidate_path(self, path: str) -> None:
        """Mark the cached rendering of `path` stale."""
        self._entries.pop(path, None)
        self._revalidations[path] = self._revalidations.get(path, 0) + 1
        logger.debug(f"Revalidated {path}")

    def get_stats(self) -> dict[str, Any]:
        """Cache statistics for the health endpoint."""
        return {
            "cached_paths": sorted(self._entries),
            "revalidations": dict(self._revalidations),
        }
