"""
Yangon Reminder Bot — Expiring key set.

Process-local memory of "already sent" keys. Each key expires after a TTL
and expired keys are swept on every access, so the set stays bounded by
the number of sends in one TTL window. Nothing is persisted; a restart
starts with an empty ledger.
"""

from __future__ import annotations

import time
from typing import Callable


class ExpiringKeySet:
    """A set whose members disappear ``ttl`` seconds after insertion."""

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._ttl = ttl_seconds
        self._clock = clock
        self._expires_at: dict[str, float] = {}

    def _sweep(self) -> None:
        now = self._clock()
        expired = [k for k, exp in self._expires_at.items() if exp <= now]
        for k in expired:
            del self._expires_at[k]

    def add(self, key: str, ttl_seconds: float | None = None) -> None:
        """Record ``key``; re-adding refreshes its expiry."""
        self._sweep()
        ttl = self._ttl if ttl_seconds is None else ttl_seconds
        self._expires_at[key] = self._clock() + ttl

    def discard(self, key: str) -> None:
        self._expires_at.pop(key, None)

    def __contains__(self, key: object) -> bool:
        self._sweep()
        return key in self._expires_at

    def __len__(self) -> int:
        self._sweep()
        return len(self._expires_at)

    def clear(self) -> None:
        self._expires_at.clear()
