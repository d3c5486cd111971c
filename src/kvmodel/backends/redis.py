# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Redis key-value backend using the ``redis`` async client.

This backend is **optional** -- if the ``redis`` package is not installed
the module can still be imported but :class:`RedisKeyValueBackend` will
raise a clear error at instantiation time.

Values are stored JSON-encoded.  TTLs map directly onto Redis'
millisecond primitives (``SET PX``, ``PEXPIRE``, ``PTTL``) and
enumeration uses ``SCAN`` so the server is never blocked by ``KEYS``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from kvmodel.backends.base import KeyValueBackend, Options, namespace_of
from kvmodel.core.constants import ABSENT, NO_EXPIRATION
from kvmodel.core.exceptions import ConfigurationError
from kvmodel.filters import KeyFilter, escape_glob

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger("kvmodel.backends.redis")

_DEFAULT_KEY_PREFIX = "kvmodel:"
_SCAN_COUNT = 100

# PTTL replies for a missing key and for a key without expiry.
_PTTL_MISSING = -2
_PTTL_PERSISTENT = -1

try:
    import redis.asyncio as aioredis

    _REDIS_AVAILABLE = True
except ImportError:  # pragma: no cover
    aioredis = None  # type: ignore[assignment]
    _REDIS_AVAILABLE = False


def redis_available() -> bool:
    """Return ``True`` if the ``redis`` package is installed."""
    return _REDIS_AVAILABLE


class RedisKeyValueBackend(KeyValueBackend):
    """Redis-backed key-value store using ``redis-py`` async client.

    Args:
        redis_url: Redis connection URL (e.g. ``redis://localhost:6379/0``).
        key_prefix: Prefix applied to every key this backend touches.
        client: Pre-built client; when given, *redis_url* is ignored.
    """

    name = "redis"

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        key_prefix: str = _DEFAULT_KEY_PREFIX,
        client: Redis | None = None,
    ) -> None:
        if client is None:
            if not _REDIS_AVAILABLE:
                raise ConfigurationError(
                    "The 'redis' package is required for the Redis backend. "
                    "Install it with: pip install 'kvmodel[redis]'"
                )
            client = aioredis.from_url(redis_url, decode_responses=True)
        self._client: Redis = client
        self._key_prefix = key_prefix

    # ------------------------------------------------------------------
    # KeyValueBackend interface
    # ------------------------------------------------------------------

    async def get(self, key: str, options: Options) -> Any:
        raw = await self._client.get(self._full_key(key, options))
        if raw is None:
            return ABSENT
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int | None, options: Options) -> None:
        full_key = self._full_key(key, options)
        if ttl == 0:
            # PX must be positive; a zero TTL means the entry is already gone.
            await self._client.delete(full_key)
            return
        data = json.dumps(value)
        if ttl is not None:
            await self._client.set(full_key, data, px=ttl)
        else:
            await self._client.set(full_key, data)

    async def expire(self, key: str, ttl: int, options: Options) -> bool:
        result = await self._client.pexpire(self._full_key(key, options), ttl)
        return bool(result)

    async def ttl(self, key: str, options: Options) -> Any:
        remaining = int(await self._client.pttl(self._full_key(key, options)))
        if remaining == _PTTL_MISSING:
            return ABSENT
        if remaining == _PTTL_PERSISTENT:
            return NO_EXPIRATION
        return remaining

    async def keys(self, key_filter: KeyFilter | None, options: Options) -> list[str]:
        # SCAN may report a key more than once while the keyspace is rehashed.
        return list(dict.fromkeys([k async for k in self.iterate_keys(key_filter, options)]))

    async def iterate_keys(
        self, key_filter: KeyFilter | None, options: Options
    ) -> AsyncIterator[str]:
        prefix = self._namespace_prefix(options)
        pattern = escape_glob(prefix) + (key_filter.redis_pattern() if key_filter else "*")
        logger.debug("SCAN MATCH %s", pattern)
        async for raw in self._client.scan_iter(match=pattern, count=_SCAN_COUNT):
            key = str(raw)[len(prefix):]
            if key_filter is None or key_filter.matches(key):
                yield key

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _namespace_prefix(self, options: Options) -> str:
        return f"{self._key_prefix}{namespace_of(options)}:"

    def _full_key(self, key: str, options: Options) -> str:
        return self._namespace_prefix(options) + key
