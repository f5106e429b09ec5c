"""Archive store adapter: full log records, compressed, under deterministic keys."""

import json
import logging
from datetime import UTC, datetime

from logcore.archive.compression import GzipCodec
from logcore.archive.store import ObjectStore
from logcore.exceptions import ArchiveError
from logcore.models import LogEntry

logger = logging.getLogger(__name__)


def archive_key(service_name: str, log_id: str, timestamp: int) -> str:
    """Key format: ``logs/{service_name}/{YYYY-MM-DD}/{id}.json.gz`` (UTC date)."""
    date = datetime.fromtimestamp(timestamp / 1000, tz=UTC).strftime("%Y-%m-%d")
    return f"logs/{service_name}/{date}/{log_id}.json.gz"


def archive_key_for(entry: LogEntry) -> str:
    return archive_key(entry.service_name, entry.id, entry.timestamp)


class ArchiveStore:
    """Writes, reads and deletes archived log records.

    Keys depend only on the record, so a repeated ``put`` overwrites the same
    object. Backend failures surface as ``ArchiveError``.
    """

    def __init__(self, store: ObjectStore, codec: GzipCodec | None = None) -> None:
        self._store = store
        self._codec = codec or GzipCodec()

    async def put(self, entry: LogEntry) -> str:
        key = archive_key_for(entry)
        payload = self._codec.compress(entry.model_dump_json())
        content_metadata = {
            "service": entry.service_name,
            "level": entry.level.value,
            "timestamp": str(entry.timestamp),
            "source": entry.source.value,
            "content_encoding": self._codec.content_encoding,
        }
        try:
            await self._store.put(key, payload, content_metadata)
        except ArchiveError:
            raise
        except Exception as exc:
            raise ArchiveError(f"Archive write failed for {key}: {exc}") from exc
        return key

    async def get(self, key: str) -> LogEntry | None:
        try:
            data = await self._store.get(key)
        except ArchiveError:
            raise
        except Exception as exc:
            raise ArchiveError(f"Archive read failed for {key}: {exc}") from exc
        if data is None:
            return None
        try:
            return LogEntry.model_validate(json.loads(self._codec.decompress(data)))
        except (OSError, ValueError) as exc:
            raise ArchiveError(f"Archived object {key} is corrupt: {exc}") from exc

    async def delete(self, key: str) -> None:
        try:
            await self._store.delete(key)
        except ArchiveError:
            raise
        except Exception as exc:
            raise ArchiveError(f"Archive delete failed for {key}: {exc}") from exc
        logger.debug("Deleted archived object %s", key)
