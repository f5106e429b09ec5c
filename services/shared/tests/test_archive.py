"""Tests for the archive store adapter and the filesystem object store."""

import gzip
import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from logcore.archive.adapter import ArchiveStore, archive_key_for
from logcore.archive.compression import GzipCodec
from logcore.archive.store import FilesystemObjectStore, ObjectStore
from logcore.db.enums import LogLevel, LogSource
from logcore.exceptions import ArchiveError
from logcore.models import LogEntry


def _entry(**overrides: object) -> LogEntry:
    fields: dict[str, object] = {
        "id": "log-1",
        "service_name": "svc-a",
        "level": LogLevel.ERROR,
        "message": "boom",
        "timestamp": 1_700_000_000_000,
        "metadata": {"request": "r1"},
    }
    fields.update(overrides)
    return LogEntry.model_validate(fields)


def test_archive_key_uses_utc_date() -> None:
    assert archive_key_for(_entry()) == "logs/svc-a/2023-11-14/log-1.json.gz"
    # 23:30 UTC on Jan 1st stays on Jan 1st regardless of local time zone
    assert archive_key_for(_entry(timestamp=1_704_151_800_000)) == "logs/svc-a/2024-01-01/log-1.json.gz"


def test_gzip_codec() -> None:
    codec = GzipCodec()
    compressed = codec.compress("hello")
    assert gzip.decompress(compressed) == b"hello"
    assert codec.decompress(codec.compress(b"bytes in")) == "bytes in"


async def test_put_get_delete(archive: ArchiveStore, object_store: FilesystemObjectStore) -> None:
    entry = _entry()

    key = await archive.put(entry)

    path = object_store.root / key
    assert path.exists()
    assert json.loads(gzip.decompress(path.read_bytes()))["message"] == "boom"
    assert await archive.get(key) == entry

    await archive.delete(key)
    assert not path.exists()
    assert await archive.get(key) is None


async def test_put_writes_content_metadata(archive: ArchiveStore, object_store: FilesystemObjectStore) -> None:
    key = await archive.put(_entry(source=LogSource.TAIL))

    metadata = await object_store.get_metadata(key)

    assert metadata == {
        "service": "svc-a",
        "level": "ERROR",
        "timestamp": "1700000000000",
        "source": "tail",
        "content_encoding": "gzip",
    }


async def test_put_is_idempotent(archive: ArchiveStore) -> None:
    """A repeated put overwrites the same key."""
    first = await archive.put(_entry(message="v1"))
    second = await archive.put(_entry(message="v2"))

    assert first == second
    stored = await archive.get(second)
    assert stored is not None
    assert stored.message == "v2"


async def test_get_missing_returns_none(archive: ArchiveStore) -> None:
    assert await archive.get("logs/svc-a/2024-01-01/missing.json.gz") is None


async def test_delete_missing_is_noop(archive: ArchiveStore, object_store: FilesystemObjectStore) -> None:
    await archive.delete("logs/svc-a/2024-01-01/missing.json.gz")
    assert not (object_store.root / "logs").exists()


async def test_corrupt_object_raises(archive: ArchiveStore, object_store: FilesystemObjectStore) -> None:
    key = "logs/svc-a/2024-01-01/corrupt.json.gz"
    await object_store.put(key, b"not gzip at all")

    with pytest.raises(ArchiveError, match="corrupt"):
        await archive.get(key)


@pytest.mark.parametrize("key", ["../outside.json.gz", "/abs/path.json.gz", "logs\\svc\\x.json.gz", ""])
async def test_keys_cannot_escape_root(object_store: FilesystemObjectStore, key: str) -> None:
    with pytest.raises(ArchiveError):
        await object_store.put(key, b"data")


async def test_no_temp_files_left_behind(archive: ArchiveStore, object_store: FilesystemObjectStore) -> None:
    key = await archive.put(_entry())

    directory = (object_store.root / key).parent
    assert sorted(p.name for p in directory.iterdir()) == ["log-1.json.gz", "log-1.json.gz.meta.json"]


async def test_backend_errors_wrapped() -> None:
    """Unexpected backend exceptions surface as ArchiveError."""
    backend = AsyncMock(spec=ObjectStore)
    backend.put.side_effect = RuntimeError("bucket gone")
    backend.get.side_effect = RuntimeError("bucket gone")
    backend.delete.side_effect = RuntimeError("bucket gone")
    store = ArchiveStore(backend)

    with pytest.raises(ArchiveError, match="write failed"):
        await store.put(_entry())
    with pytest.raises(ArchiveError, match="read failed"):
        await store.get("k")
    with pytest.raises(ArchiveError, match="delete failed"):
        await store.delete("k")


async def test_store_root_created_lazily(tmp_path: Path) -> None:
    store = FilesystemObjectStore(tmp_path / "nested" / "root")

    await store.put("a/b.bin", b"123")

    assert await store.get("a/b.bin") == b"123"
