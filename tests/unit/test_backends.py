# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for the reference backends: memory, SQLite, and Redis (mocked client)."""

from __future__ import annotations

import json
import time
from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from kvmodel.backends.base import KeyValueBackend
from kvmodel.backends.memory import MemoryKeyValueBackend
from kvmodel.backends.redis import RedisKeyValueBackend
from kvmodel.backends.sqlite import SQLiteKeyValueBackend
from kvmodel.core.constants import ABSENT, NO_EXPIRATION
from kvmodel.core.exceptions import ConfigurationError
from kvmodel.filters import KeyFilter

NO_OPTS: dict = {}


# ---------------------------------------------------------------------------
# Abstract base class contract
# ---------------------------------------------------------------------------


class TestBackendInterface:
    @pytest.mark.parametrize(
        "backend_cls", [MemoryKeyValueBackend, SQLiteKeyValueBackend, RedisKeyValueBackend]
    )
    def test_is_subclass(self, backend_cls: type) -> None:
        assert issubclass(backend_cls, KeyValueBackend)

    def test_cannot_instantiate_abstract(self) -> None:
        with pytest.raises(TypeError):
            KeyValueBackend()  # type: ignore[abstract]


# ---------------------------------------------------------------------------
# MemoryKeyValueBackend
# ---------------------------------------------------------------------------


class TestMemoryBackend:
    async def test_get_set(self, memory_backend: MemoryKeyValueBackend) -> None:
        await memory_backend.set("k1", {"a": 1}, None, NO_OPTS)
        assert await memory_backend.get("k1", NO_OPTS) == {"a": 1}

    async def test_get_missing(self, memory_backend: MemoryKeyValueBackend) -> None:
        assert await memory_backend.get("nonexistent", NO_OPTS) is ABSENT

    async def test_ttl_expiry(self, memory_backend: MemoryKeyValueBackend) -> None:
        await memory_backend.set("k1", "v1", 1000, NO_OPTS)
        assert await memory_backend.get("k1", NO_OPTS) == "v1"

        # Fast-forward time by patching the entry's expires_at
        entry = memory_backend._namespaces[""]["k1"]
        entry.expires_at = time.monotonic() * 1000 - 1

        assert await memory_backend.get("k1", NO_OPTS) is ABSENT
        assert await memory_backend.ttl("k1", NO_OPTS) is ABSENT

    async def test_ttl_none_means_no_expiry(
        self, memory_backend: MemoryKeyValueBackend
    ) -> None:
        await memory_backend.set("k1", "v1", None, NO_OPTS)
        entry = memory_backend._namespaces[""]["k1"]
        assert entry.expires_at is None
        assert entry.is_expired() is False
        assert await memory_backend.ttl("k1", NO_OPTS) is NO_EXPIRATION

    async def test_expire_missing_returns_false(
        self, memory_backend: MemoryKeyValueBackend
    ) -> None:
        assert await memory_backend.expire("nope", 100, NO_OPTS) is False

    async def test_untimed_keys_are_never_evicted(self) -> None:
        backend = MemoryKeyValueBackend()
        await backend.set("first", "keep-me", None, NO_OPTS)
        for i in range(5000):
            await backend.set(f"k{i}", i, None, NO_OPTS)

        assert await backend.get("first", NO_OPTS) == "keep-me"
        assert len(await backend.keys(None, NO_OPTS)) == 5001

    async def test_full_namespace_rejects_new_keys(self) -> None:
        backend = MemoryKeyValueBackend(max_size=3)
        for key in ("a", "b", "c"):
            await backend.set(key, key, None, NO_OPTS)

        with pytest.raises(OverflowError, match="'d' was not stored"):
            await backend.set("d", "d", None, NO_OPTS)

        assert await backend.get("a", NO_OPTS) == "a"
        assert await backend.get("d", NO_OPTS) is ABSENT

    async def test_full_namespace_allows_overwrites(self) -> None:
        backend = MemoryKeyValueBackend(max_size=2)
        await backend.set("a", 1, None, NO_OPTS)
        await backend.set("b", 2, None, NO_OPTS)
        await backend.set("a", 10, None, NO_OPTS)
        assert await backend.get("a", NO_OPTS) == 10

    async def test_full_namespace_reclaims_expired_entries(self) -> None:
        backend = MemoryKeyValueBackend(max_size=2)
        await backend.set("a", 1, 1000, NO_OPTS)
        await backend.set("b", 2, None, NO_OPTS)
        backend._namespaces[""]["a"].expires_at = time.monotonic() * 1000 - 1

        await backend.set("c", 3, None, NO_OPTS)
        assert await backend.keys(None, NO_OPTS) == ["b", "c"]

    async def test_capacity_is_per_namespace(self) -> None:
        backend = MemoryKeyValueBackend(max_size=1)
        await backend.set("k", 1, None, {"namespace": "one"})
        await backend.set("k", 2, None, {"namespace": "two"})
        assert await backend.get("k", {"namespace": "two"}) == 2

    async def test_ttl_rounds_up_below_one_millisecond(self, monkeypatch) -> None:
        clock = [1_000.0]
        monkeypatch.setattr("kvmodel.backends.memory._now_ms", lambda: clock[0])
        backend = MemoryKeyValueBackend()
        await backend.set("k", "v", 1000, NO_OPTS)

        clock[0] += 999.5
        assert await backend.get("k", NO_OPTS) == "v"
        assert await backend.ttl("k", NO_OPTS) == 1

        clock[0] += 0.5
        assert await backend.get("k", NO_OPTS) is ABSENT
        assert await backend.ttl("k", NO_OPTS) is ABSENT

    async def test_ttl_counts_down(self, monkeypatch) -> None:
        clock = [0.0]
        monkeypatch.setattr("kvmodel.backends.memory._now_ms", lambda: clock[0])
        backend = MemoryKeyValueBackend()
        await backend.set("k", "v", 1000, NO_OPTS)
        assert await backend.ttl("k", NO_OPTS) == 1000
        clock[0] = 250.25
        assert await backend.ttl("k", NO_OPTS) == 750

    async def test_keys_prunes_expired(self) -> None:
        backend = MemoryKeyValueBackend()
        await backend.set("k1", "v1", 1000, NO_OPTS)
        await backend.set("k2", "v2", None, NO_OPTS)
        backend._namespaces[""]["k1"].expires_at = time.monotonic() * 1000 - 1

        assert await backend.keys(None, NO_OPTS) == ["k2"]
        assert "k1" not in backend._namespaces[""]

    async def test_close_clears_store(self, memory_backend: MemoryKeyValueBackend) -> None:
        await memory_backend.set("k1", "v1", None, NO_OPTS)
        await memory_backend.close()
        assert await memory_backend.keys(None, NO_OPTS) == []

    async def test_reads_do_not_create_namespaces(
        self, memory_backend: MemoryKeyValueBackend
    ) -> None:
        await memory_backend.get("k", {"namespace": "ghost"})
        await memory_backend.keys(None, {"namespace": "ghost"})
        assert "ghost" not in memory_backend._namespaces


# ---------------------------------------------------------------------------
# SQLiteKeyValueBackend
# ---------------------------------------------------------------------------


@pytest.fixture
async def sqlite_backend(tmp_path) -> AsyncIterator[SQLiteKeyValueBackend]:
    backend = SQLiteKeyValueBackend(tmp_path / "kv.db", batch_size=2)
    yield backend
    await backend.close()


class TestSQLiteBackend:
    async def test_round_trip(self, sqlite_backend: SQLiteKeyValueBackend) -> None:
        await sqlite_backend.set("k", {"list": [1, None]}, None, NO_OPTS)
        assert await sqlite_backend.get("k", NO_OPTS) == {"list": [1, None]}

    async def test_stored_null(self, sqlite_backend: SQLiteKeyValueBackend) -> None:
        await sqlite_backend.set("k", None, None, NO_OPTS)
        assert await sqlite_backend.get("k", NO_OPTS) is None

    async def test_missing(self, sqlite_backend: SQLiteKeyValueBackend) -> None:
        assert await sqlite_backend.get("k", NO_OPTS) is ABSENT
        assert await sqlite_backend.ttl("k", NO_OPTS) is ABSENT
        assert await sqlite_backend.expire("k", 10, NO_OPTS) is False

    async def test_ttl_and_expire(self, sqlite_backend: SQLiteKeyValueBackend) -> None:
        await sqlite_backend.set("k", "v", None, NO_OPTS)
        assert await sqlite_backend.ttl("k", NO_OPTS) is NO_EXPIRATION
        assert await sqlite_backend.expire("k", 5000, NO_OPTS) is True
        assert 0 < await sqlite_backend.ttl("k", NO_OPTS) <= 5000

    async def test_zero_ttl_is_expired(self, sqlite_backend: SQLiteKeyValueBackend) -> None:
        await sqlite_backend.set("k", "v", 0, NO_OPTS)
        assert await sqlite_backend.get("k", NO_OPTS) is ABSENT
        assert await sqlite_backend.keys(None, NO_OPTS) == []

    async def test_upsert_replaces_ttl(self, sqlite_backend: SQLiteKeyValueBackend) -> None:
        await sqlite_backend.set("k", "v", 5000, NO_OPTS)
        await sqlite_backend.set("k", "w", None, NO_OPTS)
        assert await sqlite_backend.get("k", NO_OPTS) == "w"
        assert await sqlite_backend.ttl("k", NO_OPTS) is NO_EXPIRATION

    async def test_keys_sorted_and_filtered(self, sqlite_backend: SQLiteKeyValueBackend) -> None:
        for key in ("xyz", "abc2", "abc1"):
            await sqlite_backend.set(key, 1, None, NO_OPTS)
        assert await sqlite_backend.keys(None, NO_OPTS) == ["abc1", "abc2", "xyz"]
        assert await sqlite_backend.keys(KeyFilter(match="abc*"), NO_OPTS) == ["abc1", "abc2"]

    async def test_iterate_pages_through_all_keys(
        self, sqlite_backend: SQLiteKeyValueBackend
    ) -> None:
        keys = [f"key{i:02d}" for i in range(7)]
        for key in keys:
            await sqlite_backend.set(key, 1, None, NO_OPTS)
        seen = [k async for k in sqlite_backend.iterate_keys(None, NO_OPTS)]
        assert seen == keys

    async def test_iterate_survives_deletes_between_pages(
        self, sqlite_backend: SQLiteKeyValueBackend
    ) -> None:
        for key in ("a", "b", "c", "d", "e"):
            await sqlite_backend.set(key, 1, None, NO_OPTS)
        seen = []
        async for key in sqlite_backend.iterate_keys(None, NO_OPTS):
            seen.append(key)
            if key == "a":
                await sqlite_backend.expire("c", 0, NO_OPTS)
        assert seen == ["a", "b", "d", "e"]

    async def test_namespaces(self, sqlite_backend: SQLiteKeyValueBackend) -> None:
        await sqlite_backend.set("k", "one", None, {"namespace": "one"})
        await sqlite_backend.set("k", "root", None, NO_OPTS)
        assert await sqlite_backend.get("k", {"namespace": "one"}) == "one"
        assert await sqlite_backend.keys(None, {"namespace": "two"}) == []

    async def test_persists_across_connections(self, tmp_path) -> None:
        path = tmp_path / "persist.db"
        first = SQLiteKeyValueBackend(path)
        await first.set("k", [1, 2], None, NO_OPTS)
        await first.close()

        second = SQLiteKeyValueBackend(path)
        try:
            assert await second.get("k", NO_OPTS) == [1, 2]
        finally:
            await second.close()


# ---------------------------------------------------------------------------
# RedisKeyValueBackend (mocked client)
# ---------------------------------------------------------------------------


def _scan_iter(*keys: str) -> MagicMock:
    async def _gen(**_: object) -> AsyncIterator[str]:
        for key in keys:
            yield key

    return MagicMock(side_effect=_gen)


@pytest.fixture
def redis_client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def redis_backend(redis_client: AsyncMock) -> RedisKeyValueBackend:
    return RedisKeyValueBackend(client=redis_client, key_prefix="t:")


class TestRedisBackend:
    async def test_get_decodes_json(
        self, redis_backend: RedisKeyValueBackend, redis_client: AsyncMock
    ) -> None:
        redis_client.get.return_value = json.dumps({"a": 1})
        assert await redis_backend.get("k", NO_OPTS) == {"a": 1}
        redis_client.get.assert_awaited_once_with("t::k")

    async def test_get_missing(
        self, redis_backend: RedisKeyValueBackend, redis_client: AsyncMock
    ) -> None:
        redis_client.get.return_value = None
        assert await redis_backend.get("k", NO_OPTS) is ABSENT

    async def test_set_with_ttl_uses_px(
        self, redis_backend: RedisKeyValueBackend, redis_client: AsyncMock
    ) -> None:
        await redis_backend.set("k", "v", 1500, {"namespace": "ns"})
        redis_client.set.assert_awaited_once_with("t:ns:k", '"v"', px=1500)

    async def test_set_without_ttl(
        self, redis_backend: RedisKeyValueBackend, redis_client: AsyncMock
    ) -> None:
        await redis_backend.set("k", [1], None, NO_OPTS)
        redis_client.set.assert_awaited_once_with("t::k", "[1]")

    async def test_set_zero_ttl_deletes(
        self, redis_backend: RedisKeyValueBackend, redis_client: AsyncMock
    ) -> None:
        await redis_backend.set("k", "v", 0, NO_OPTS)
        redis_client.delete.assert_awaited_once_with("t::k")
        redis_client.set.assert_not_awaited()

    async def test_expire(
        self, redis_backend: RedisKeyValueBackend, redis_client: AsyncMock
    ) -> None:
        redis_client.pexpire.return_value = 1
        assert await redis_backend.expire("k", 100, NO_OPTS) is True
        redis_client.pexpire.return_value = 0
        assert await redis_backend.expire("k", 100, NO_OPTS) is False

    @pytest.mark.parametrize(("reply", "expected"), [(-2, ABSENT), (-1, NO_EXPIRATION), (750, 750)])
    async def test_ttl_maps_pttl_replies(
        self,
        redis_backend: RedisKeyValueBackend,
        redis_client: AsyncMock,
        reply: int,
        expected: object,
    ) -> None:
        redis_client.pttl.return_value = reply
        assert await redis_backend.ttl("k", NO_OPTS) == expected

    async def test_keys_strip_prefix_and_filter(
        self, redis_backend: RedisKeyValueBackend, redis_client: AsyncMock
    ) -> None:
        redis_client.scan_iter = _scan_iter("t::abc1", "t::abc2", "t::abc1")
        keys = await redis_backend.keys(KeyFilter(match="abc*"), NO_OPTS)
        assert keys == ["abc1", "abc2"]
        redis_client.scan_iter.assert_called_once_with(match="t::abc*", count=100)

    async def test_prefix_filter_is_escaped(
        self, redis_backend: RedisKeyValueBackend, redis_client: AsyncMock
    ) -> None:
        redis_client.scan_iter = _scan_iter("t::a*b-1")
        keys = [k async for k in redis_backend.iterate_keys(KeyFilter(prefix="a*b"), NO_OPTS)]
        assert keys == ["a*b-1"]
        redis_client.scan_iter.assert_called_once_with(match="t::a\\*b*", count=100)

    async def test_negated_class_uses_redis_syntax(
        self, redis_backend: RedisKeyValueBackend, redis_client: AsyncMock
    ) -> None:
        redis_client.scan_iter = _scan_iter("t::b", "t::!")
        keys = await redis_backend.keys(KeyFilter(match="[!a]"), NO_OPTS)
        assert keys == ["b", "!"]
        redis_client.scan_iter.assert_called_once_with(match="t::[^a]", count=100)

    async def test_negated_class_agrees_with_memory_backend(
        self, redis_backend: RedisKeyValueBackend, redis_client: AsyncMock
    ) -> None:
        memory = MemoryKeyValueBackend()
        for key in ("a", "b", "!"):
            await memory.set(key, 1, None, NO_OPTS)
        key_filter = KeyFilter(match="[!a]")
        # The server applies the translated pattern; only non-"a" keys come back.
        redis_client.scan_iter = _scan_iter("t::b", "t::!")

        assert sorted(await redis_backend.keys(key_filter, NO_OPTS)) == sorted(
            await memory.keys(key_filter, NO_OPTS)
        )

    async def test_backslash_in_match_is_escaped(
        self, redis_backend: RedisKeyValueBackend, redis_client: AsyncMock
    ) -> None:
        redis_client.scan_iter = _scan_iter("t::a\\b")
        keys = await redis_backend.keys(KeyFilter(match="a\\b"), NO_OPTS)
        assert keys == ["a\\b"]
        redis_client.scan_iter.assert_called_once_with(match="t::a\\\\b", count=100)

    async def test_close(
        self, redis_backend: RedisKeyValueBackend, redis_client: AsyncMock
    ) -> None:
        await redis_backend.close()
        redis_client.aclose.assert_awaited_once()

    def test_missing_package_is_configuration_error(self) -> None:
        with patch("kvmodel.backends.redis._REDIS_AVAILABLE", False), pytest.raises(
            ConfigurationError, match="redis"
        ):
            RedisKeyValueBackend(redis_url="redis://localhost:6379/0")

    def test_redis_available_returns_bool(self) -> None:
        from kvmodel.backends.redis import redis_available

        assert isinstance(redis_available(), bool)
