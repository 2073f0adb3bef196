"""
Unit tests for the in-process session store.

Tests cover:
- get/set/destroy semantics, including absent keys
- lazy expiry for zero, negative and elapsed TTLs
- LRU eviction once capacity is exceeded
- consistency when several threads share one store
- the not-initialized error after close()
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest
from hypothesis import given, strategies as st

from errors.codes import ErrorCode
from errors.exceptions import StoreNotInitializedError
from session.memory_store import MemorySessionStore, MemoryStoreEntry


class TestMemoryStoreBasics:
    """Tests for get/set/destroy."""

    @pytest.mark.asyncio
    async def test_set_then_get_returns_payload(self, memory_store):
        await memory_store.set("abc", b'{"a":1}', 60)

        assert await memory_store.get("abc") == b'{"a":1}'

    @pytest.mark.asyncio
    async def test_get_unknown_key_returns_empty(self, memory_store):
        assert await memory_store.get("missing") == b""

    @pytest.mark.asyncio
    async def test_set_overwrites(self, memory_store):
        await memory_store.set("abc", b"one", 60)
        await memory_store.set("abc", b"two", 60)

        assert await memory_store.get("abc") == b"two"

    @pytest.mark.asyncio
    async def test_destroy_removes_key(self, memory_store):
        await memory_store.set("abc", b"data", 60)
        await memory_store.destroy("abc")

        assert await memory_store.get("abc") == b""

    @pytest.mark.asyncio
    async def test_destroy_absent_key_is_not_an_error(self, memory_store):
        await memory_store.destroy("never-set")

        assert await memory_store.get("never-set") == b""

    def test_size_must_be_positive(self):
        with pytest.raises(ValueError):
            MemorySessionStore(size=0)


class TestMemoryStoreExpiry:
    """Tests for lazy TTL expiry."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ttl", [0, -1, -3600])
    async def test_non_positive_ttl_is_already_expired(self, memory_store, ttl):
        await memory_store.set("abc", b"data", ttl)

        assert await memory_store.get("abc") == b""

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, memory_store):
        with patch("session.memory_store.time.time", return_value=1_000.0):
            await memory_store.set("abc", b"data", 10)

        with patch("session.memory_store.time.time", return_value=1_009.0):
            assert await memory_store.get("abc") == b"data"

        with patch("session.memory_store.time.time", return_value=1_010.0):
            assert await memory_store.get("abc") == b""

    @pytest.mark.asyncio
    async def test_expired_entry_is_purged_on_read(self, memory_store):
        await memory_store.set("abc", b"data", -1)
        assert len(memory_store) == 1

        await memory_store.get("abc")

        assert len(memory_store) == 0

    def test_entry_is_expired(self):
        entry = MemoryStoreEntry(expires_at=100.0, data=b"x")

        assert entry.is_expired(now=100.0)
        assert entry.is_expired(now=101.0)
        assert not entry.is_expired(now=99.5)


class TestMemoryStoreEviction:
    """Tests for LRU eviction."""

    @pytest.mark.asyncio
    async def test_least_recently_used_entry_is_evicted(self):
        store = MemorySessionStore(size=2)
        await store.set("a", b"1", 60)
        await store.set("b", b"2", 60)
        # Touch "a" so "b" becomes the least recently used.
        await store.get("a")
        await store.set("c", b"3", 60)

        assert await store.get("a") == b"1"
        assert await store.get("b") == b""
        assert await store.get("c") == b"3"


class TestMemoryStoreConcurrency:
    """Tests for one store shared by event loops on several threads."""

    def test_interleaved_operations_stay_consistent(self):
        store = MemorySessionStore(size=8)
        keys = [f"k{n}" for n in range(12)]
        rounds = 200

        def plan(n: int):
            for i in range(rounds):
                key = keys[(n * 7 + i) % len(keys)]
                yield key, (n + i) % 3, f"{key}:{n}:{i}".encode()

        written = {key: set() for key in keys}
        for n in range(6):
            for key, op, payload in plan(n):
                if op == 0:
                    written[key].add(payload)

        async def worker(n: int) -> list[tuple[str, bytes]]:
            reads = []
            for key, op, payload in plan(n):
                if op == 0:
                    await store.set(key, payload, 60)
                elif op == 1:
                    reads.append((key, await store.get(key)))
                else:
                    await store.destroy(key)
                await asyncio.sleep(0)
            return reads

        with ThreadPoolExecutor(max_workers=6) as pool:
            futures = [pool.submit(asyncio.run, worker(n)) for n in range(6)]
            results = [f.result() for f in futures]

        assert len(store) <= 8
        reads = [read for worker_reads in results for read in worker_reads]
        assert reads
        for key, payload in reads:
            if payload:
                assert payload in written[key]


class TestMemoryStoreNotInitialized:
    """Tests for the store after close()."""

    @pytest.mark.asyncio
    async def test_operations_fail_after_close(self, memory_store):
        await memory_store.close()

        with pytest.raises(StoreNotInitializedError) as exc_info:
            await memory_store.get("abc")
        assert exc_info.value.error_code == ErrorCode.STORE_NOT_INITIALIZED

        with pytest.raises(StoreNotInitializedError):
            await memory_store.set("abc", b"data", 60)

        with pytest.raises(StoreNotInitializedError):
            await memory_store.destroy("abc")


class TestMemoryStoreProperties:
    """Property-based tests for the store contract."""

    @given(
        key=st.text(min_size=1, max_size=40),
        payload=st.binary(min_size=1, max_size=256),
        ttl=st.integers(min_value=1, max_value=10**6),
    )
    def test_set_then_get_roundtrip(self, key, payload, ttl):
        store = MemorySessionStore(size=8)

        async def scenario():
            await store.set(key, payload, ttl)
            return await store.get(key)

        assert asyncio.run(scenario()) == payload

    @given(
        key=st.text(min_size=1, max_size=40),
        set_first=st.booleans(),
    )
    def test_destroy_then_get_is_empty(self, key, set_first):
        store = MemorySessionStore(size=8)

        async def scenario():
            if set_first:
                await store.set(key, b"payload", 60)
            await store.destroy(key)
            return await store.get(key)

        assert asyncio.run(scenario()) == b""
