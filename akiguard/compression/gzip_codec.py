"""
Gzip codec.
The native path: standard deflate with a gzip header, tried first.
"""

import gzip
import zlib

from akiguard.compression.base import TextCodec
from akiguard.errors import CorruptPayloadError


GZIP_MAGIC = b"\x1f\x8b"


class GzipCodec(TextCodec):
    """
    Gzip-compressed UTF-8.

    Args:
        level: Deflate level, 0-9.
    """

    name = "gzip"

    def __init__(self, level: int = 9):
        self.level = level

    def encode(self, text: str) -> bytes:
        # mtime=0 keeps output deterministic for the same input
        return gzip.compress(text.encode("utf-8"), compresslevel=self.level, mtime=0)

    def decode(self, payload: bytes) -> str:
        try:
            return gzip.decompress(payload).decode("utf-8")
        except (OSError, EOFError, zlib.error, UnicodeDecodeError):
            raise CorruptPayloadError("Gzip payload is corrupt or truncated") from None

    def matches(self, payload: bytes) -> bool:
        return payload[:2] == GZIP_MAGIC
