"""Keyed TTL store for permission snapshots."""

import logging
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)


class PermissionCache:
    """
    Explicit per-user cache of resolved permission snapshots.

    One instance is owned by the application (``app.state.permission_cache``)
    and handed to PermissionService per request. Entries expire after
    ``ttl_seconds``; a ttl of 0 disables caching entirely, so every check
    re-reads grant rows.

    Any mutation of a user's grants, system roles, memberships or membership
    roles must call ``invalidate(user_id)``; role template mutations affect
    many users and call ``clear()``.
    """

    def __init__(self, ttl_seconds: int = 0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[int, tuple[Any, float]] = {}

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def get(self, user_id: int) -> Any | None:
        if not self.enabled:
            return None
        entry = self._entries.get(user_id)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[user_id]
            return None
        return value

    def set(self, user_id: int, value: Any) -> None:
        if not self.enabled:
            return
        self._entries[user_id] = (value, self._clock() + self.ttl_seconds)

    def invalidate(self, user_id: int) -> None:
        if self._entries.pop(user_id, None) is not None:
            logger.debug("Invalidated cached permissions for user %s", user_id)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
