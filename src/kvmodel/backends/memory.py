# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""In-memory key-value backend with millisecond TTL expiry.

This is the default backend and requires no external services.  Each
namespace gets its own dict with per-entry expiry timestamps taken from
the monotonic clock.  Entries are only ever removed by expiry or by an
explicit write; an optional per-namespace capacity rejects new keys
instead of evicting old ones.  Values are deep-copied on the way in and
out so callers never alias stored data.
"""

from __future__ import annotations

import copy
import math
import time
from collections.abc import AsyncIterator
from typing import Any

from kvmodel.backends.base import KeyValueBackend, Options, namespace_of
from kvmodel.core.constants import ABSENT, NO_EXPIRATION
from kvmodel.filters import KeyFilter


def _now_ms() -> float:
    return time.monotonic() * 1000


class _Entry:
    """A stored value with an optional expiry timestamp (monotonic ms)."""

    __slots__ = ("expires_at", "value")

    def __init__(self, value: Any, expires_at: float | None) -> None:
        self.value = value
        self.expires_at = expires_at

    def is_expired(self, now: float | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now if now is not None else _now_ms()) >= self.expires_at


class MemoryKeyValueBackend(KeyValueBackend):
    """In-memory key-value store with TTL support.

    Args:
        max_size: Optional maximum number of live entries per namespace.
            ``None`` (the default) means unbounded.  When a namespace is
            full, writing a new key raises :class:`OverflowError`;
            overwriting an existing key is always allowed.
    """

    name = "memory"

    def __init__(self, max_size: int | None = None) -> None:
        self._namespaces: dict[str, dict[str, _Entry]] = {}
        self._max_size = max_size

    # ------------------------------------------------------------------
    # KeyValueBackend interface
    # ------------------------------------------------------------------

    async def get(self, key: str, options: Options) -> Any:
        entry = self._live_entry(key, options)
        if entry is None:
            return ABSENT
        return copy.deepcopy(entry.value)

    async def set(self, key: str, value: Any, ttl: int | None, options: Options) -> None:
        store = self._store(options, create=True)
        if self._max_size is not None and key not in store and len(store) >= self._max_size:
            self._prune_expired(options)
            if len(store) >= self._max_size:
                msg = (
                    f"namespace {namespace_of(options)!r} is full "
                    f"({self._max_size} entries); {key!r} was not stored"
                )
                raise OverflowError(msg)
        expires_at = (_now_ms() + ttl) if ttl is not None else None
        store[key] = _Entry(value=copy.deepcopy(value), expires_at=expires_at)

    async def expire(self, key: str, ttl: int, options: Options) -> bool:
        entry = self._live_entry(key, options)
        if entry is None:
            return False
        entry.expires_at = _now_ms() + ttl
        return True

    async def ttl(self, key: str, options: Options) -> Any:
        now = _now_ms()
        entry = self._live_entry(key, options, now)
        if entry is None:
            return ABSENT
        if entry.expires_at is None:
            return NO_EXPIRATION
        # Round up: a live entry never reports 0.
        return math.ceil(entry.expires_at - now)

    async def keys(self, key_filter: KeyFilter | None, options: Options) -> list[str]:
        self._prune_expired(options)
        store = self._store(options)
        return [k for k in store if key_filter is None or key_filter.matches(k)]

    async def iterate_keys(
        self, key_filter: KeyFilter | None, options: Options
    ) -> AsyncIterator[str]:
        store = self._store(options)
        # Copy of the key list only; entries are re-checked as we go so
        # writes made between pulls are tolerated.
        for key in list(store):
            entry = store.get(key)
            if entry is None or entry.is_expired():
                continue
            if key_filter is None or key_filter.matches(key):
                yield key

    async def close(self) -> None:
        self._namespaces.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _store(self, options: Options, *, create: bool = False) -> dict[str, _Entry]:
        ns = namespace_of(options)
        store = self._namespaces.get(ns)
        if store is None:
            store = {}
            if create:
                self._namespaces[ns] = store
        return store

    def _live_entry(
        self, key: str, options: Options, now: float | None = None
    ) -> _Entry | None:
        store = self._store(options)
        entry = store.get(key)
        if entry is None:
            return None
        if entry.is_expired(now):
            del store[key]
            return None
        return entry

    def _prune_expired(self, options: Options) -> None:
        """Remove all expired entries of the namespace in *options*."""
        store = self._store(options)
        now = _now_ms()
        expired_keys = [k for k, v in store.items() if v.is_expired(now)]
        for k in expired_keys:
            del store[k]
