"""Gzip codec for archived log objects."""

import gzip


class GzipCodec:
    """Compresses archive payloads with gzip."""

    content_encoding = "gzip"

    def __init__(self, level: int = 6) -> None:
        self._level = level

    def compress(self, data: str | bytes) -> bytes:
        if isinstance(data, str):
            data = data.encode("utf-8")
        return gzip.compress(data, compresslevel=self._level)

    def decompress(self, data: bytes) -> str:
        return gzip.decompress(data).decode("utf-8")
