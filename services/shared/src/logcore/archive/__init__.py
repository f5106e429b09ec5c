"""Durable archive of full log records."""

from logcore.archive.adapter import ArchiveStore, archive_key, archive_key_for
from logcore.archive.compression import GzipCodec
from logcore.archive.store import FilesystemObjectStore, ObjectStore

__all__ = ["ArchiveStore", "FilesystemObjectStore", "GzipCodec", "ObjectStore", "archive_key", "archive_key_for"]
