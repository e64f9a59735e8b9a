"""Unit tests for short path generation and its retry loop."""

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from linkshort.errors import DuplicateShortPathError, GenerationError, RandomSourceError, StorageError
from linkshort.generator import ShortPathGenerator, encode_short_path
from linkshort.stats import ServiceStats
from linkshort.store import LinkStore


def sequence(*chunks: bytes) -> Callable[[int], bytes]:
    """Random source replaying the given chunks, then repeating the last one."""
    remaining = list(chunks)
    calls = MagicMock()

    def _random(n: int) -> bytes:
        calls(n)
        return remaining.pop(0) if len(remaining) > 1 else remaining[0]

    _random.calls = calls
    return _random


def test_encode_short_path_is_urlsafe_and_unpadded() -> None:
    assert encode_short_path(b"\x00" * 6) == "AAAAAAAA"
    assert encode_short_path(b"\xff" * 6) == "________"
    assert encode_short_path(b"\xfb\xef\xbe" * 2) == "----" * 2


@pytest.mark.asyncio
async def test_generate_inserts_link(store: LinkStore, stats: ServiceStats) -> None:
    generator = ShortPathGenerator(store, stats)
    short_path = await generator.generate("https://lemurs.win", "10.0.0.1", None)
    assert len(short_path) == 8
    assert await store.lookup_link(short_path) == "https://lemurs.win"


@pytest.mark.asyncio
async def test_generate_retries_on_collision(store: LinkStore, stats: ServiceStats) -> None:
    random_bytes = sequence(b"\x00" * 6, b"\x00" * 6, b"\x01" * 6)
    generator = ShortPathGenerator(store, stats, random_bytes=random_bytes)

    assert await generator.generate("https://one.example", "", None) == "AAAAAAAA"
    assert await generator.generate("https://two.example", "", None) == "AQEBAQEB"
    assert random_bytes.calls.call_count == 3
    assert await store.lookup_link("AAAAAAAA") == "https://one.example"
    assert await store.lookup_link("AQEBAQEB") == "https://two.example"


@pytest.mark.asyncio
async def test_generate_gives_up_after_max_attempts(store: LinkStore, stats: ServiceStats) -> None:
    random_bytes = sequence(b"\x00" * 6)
    generator = ShortPathGenerator(store, stats, max_attempts=3, random_bytes=random_bytes)

    await generator.generate("https://one.example", "", None)
    with pytest.raises(GenerationError) as exc_info:
        await generator.generate("https://two.example", "", None)

    assert not isinstance(exc_info.value, RandomSourceError)
    assert random_bytes.calls.call_count == 1 + 3
    assert await store.count_links() == 1


@pytest.mark.asyncio
async def test_random_source_failure_is_counted(store: LinkStore, stats: ServiceStats) -> None:
    def broken(n: int) -> bytes:
        raise OSError("getrandom failed")

    generator = ShortPathGenerator(store, stats, random_bytes=broken)
    with pytest.raises(RandomSourceError):
        await generator.generate("https://lemurs.win", "", None)

    assert stats.snapshot().random_errors == 1
    assert await store.count_links() == 0


@pytest.mark.asyncio
async def test_storage_error_retried_by_default(stats: ServiceStats) -> None:
    store = MagicMock()
    store.insert_link = AsyncMock(side_effect=[StorageError("database is locked"), None])
    generator = ShortPathGenerator(store, stats)

    short_path = await generator.generate("https://lemurs.win", "", None)
    assert store.insert_link.await_count == 2
    assert store.insert_link.await_args.args[0] == short_path


@pytest.mark.asyncio
async def test_storage_error_fails_fast_when_configured(stats: ServiceStats) -> None:
    store = MagicMock()
    store.insert_link = AsyncMock(side_effect=StorageError("database is locked"))
    generator = ShortPathGenerator(store, stats, retry_on_storage_error=False)

    with pytest.raises(GenerationError):
        await generator.generate("https://lemurs.win", "", None)
    assert store.insert_link.await_count == 1


@pytest.mark.asyncio
async def test_collisions_still_retried_when_failing_fast(stats: ServiceStats) -> None:
    store = MagicMock()
    store.insert_link = AsyncMock(side_effect=[DuplicateShortPathError(), None])
    generator = ShortPathGenerator(store, stats, retry_on_storage_error=False)

    await generator.generate("https://lemurs.win", "", None)
    assert store.insert_link.await_count == 2


@pytest.mark.asyncio
async def test_creation_metadata_passed_to_store(stats: ServiceStats) -> None:
    store = MagicMock()
    store.insert_link = AsyncMock()
    generator = ShortPathGenerator(
        store,
        stats,
        random_bytes=lambda n: b"\x01" * n,
        clock=lambda: 1700000000.9,
    )

    await generator.generate("https://lemurs.win", "192.0.2.1", "198.51.100.2")
    store.insert_link.assert_awaited_once_with(
        "AQEBAQEB", "https://lemurs.win", 1700000000, "192.0.2.1", "198.51.100.2"
    )
