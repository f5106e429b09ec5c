"""Blob store backends for the log archive."""

import functools
import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

import anyio.to_thread

from logcore.exceptions import ArchiveError

_META_SUFFIX = ".meta.json"


class ObjectStore(Protocol):
    """Path-keyed blob storage."""

    async def put(self, key: str, data: bytes, content_metadata: dict[str, str] | None = None) -> None: ...

    async def get(self, key: str) -> bytes | None: ...

    async def delete(self, key: str) -> None: ...


class FilesystemObjectStore:
    """Object store rooted at a local directory.

    Writes land in a temp file that is renamed into place, so readers never
    see a partial object. Content metadata is kept in a ``.meta.json`` sidecar.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, key: str) -> Path:
        if not key or key.startswith("/") or "\\" in key:
            raise ArchiveError(f"Invalid archive key: {key!r}")
        path = (self._root / key).resolve()
        if not path.is_relative_to(self._root):
            raise ArchiveError(f"Archive key escapes the store root: {key!r}")
        return path

    async def put(self, key: str, data: bytes, content_metadata: dict[str, str] | None = None) -> None:
        path = self._path_for(key)
        try:
            await anyio.to_thread.run_sync(functools.partial(_write_atomic, path, data))
            if content_metadata:
                meta = json.dumps(content_metadata).encode("utf-8")
                meta_path = path.with_name(path.name + _META_SUFFIX)
                await anyio.to_thread.run_sync(functools.partial(_write_atomic, meta_path, meta))
        except OSError as exc:
            raise ArchiveError(f"Failed to write {key}: {exc}") from exc

    async def get(self, key: str) -> bytes | None:
        path = self._path_for(key)
        try:
            return await anyio.to_thread.run_sync(path.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ArchiveError(f"Failed to read {key}: {exc}") from exc

    async def get_metadata(self, key: str) -> dict[str, str] | None:
        path = self._path_for(key)
        meta_path = path.with_name(path.name + _META_SUFFIX)
        try:
            raw = await anyio.to_thread.run_sync(meta_path.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ArchiveError(f"Failed to read metadata for {key}: {exc}") from exc
        metadata: dict[str, str] = json.loads(raw)
        return metadata

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        meta_path = path.with_name(path.name + _META_SUFFIX)
        try:
            await anyio.to_thread.run_sync(lambda: path.unlink(missing_ok=True))
            await anyio.to_thread.run_sync(lambda: meta_path.unlink(missing_ok=True))
        except OSError as exc:
            raise ArchiveError(f"Failed to delete {key}: {exc}") from exc


def _write_atomic(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
