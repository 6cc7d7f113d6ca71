"""In-memory cache of resolved projects.

Purpose
-------
Keep resolved :class:`ProjectConfig` instances keyed by resolution context so
repeated operations in the same working directory skip file I/O and parsing.

System Role
-----------
Owned by :class:`lib_compose_db.application.resolver.ProjectResolver`. Entries
never expire unless a caller opts into a TTL; the resolver invalidates an entry
whenever a re-resolution of the same key fails. Values are immutable, so
concurrent readers need no locking and concurrent writers simply replace each
other with equal results.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from ..domain.project import ProjectConfig
from ..observability import log_debug


@dataclass(frozen=True, slots=True)
class _Entry:
    value: ProjectConfig
    expires_at: float | None


class ProjectCache:
    """Keyed store for resolved projects with optional time-based expiry.

    Examples
    --------
    >>> cache = ProjectCache()
    >>> cache.set("project:/srv/app", ProjectConfig("app"))
    >>> cache.get("project:/srv/app").name
    'app'
    >>> cache.invalidate("project:/srv/app")
    True
    >>> cache.get("project:/srv/app") is None
    True
    """

    def __init__(self, *, ttl_seconds: float | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, _Entry] = {}
        self._ttl = ttl_seconds
        self._clock = clock

    def get(self, key: str) -> ProjectConfig | None:
        """Return the cached project for *key* or ``None`` on miss/expiry."""

        entry = self._entries.get(key)
        if entry is None:
            log_debug("cache_miss", key=key)
            return None
        if entry.expires_at is not None and self._clock() > entry.expires_at:
            self._entries.pop(key, None)
            log_debug("cache_expired", key=key)
            return None
        log_debug("cache_hit", key=key)
        return entry.value

    def set(self, key: str, value: ProjectConfig) -> None:
        expires_at = self._clock() + self._ttl if self._ttl is not None else None
        self._entries[key] = _Entry(value, expires_at)
        log_debug("cache_set", key=key, ttl=self._ttl)

    def invalidate(self, key: str) -> bool:
        """Drop *key*; return ``True`` when an entry was removed."""

        removed = self._entries.pop(key, None) is not None
        if removed:
            log_debug("cache_invalidated", key=key)
        return removed

    def clear(self) -> None:
        size = len(self._entries)
        self._entries.clear()
        log_debug("cache_cleared", entries=size)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
