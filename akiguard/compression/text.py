"""
Text Compressor
Reversible string compression for storing attachments as text.

Flow for compressing:
1. Try each codec in order (gzip, then run-length)
2. First codec that succeeds wins; failures are logged and skipped
3. Base64 the bytes so the result is safe in a text column

Flow for decompressing:
1. Base64-decode
2. Ask each codec whether the bytes are its output (gzip has a magic header)
3. Decode with the first codec that claims them

Each path round-trips exactly on its own. Corrupt input raises
CorruptPayloadError rather than returning partial text.
"""

import base64
import binascii
import logging

from akiguard.compression.base import TextCodec
from akiguard.compression.gzip_codec import GzipCodec
from akiguard.compression.rle import RunLengthCodec
from akiguard.errors import CompressionError, CorruptPayloadError

logger = logging.getLogger(__name__)


def default_codecs() -> list[TextCodec]:
    """Gzip first, run-length as the fallback."""
    return [GzipCodec(), RunLengthCodec()]


class TextCompressor:
    """
    Compresses strings through an ordered chain of codecs.

    Args:
        codecs: Codecs in order of preference. Defaults to gzip then run-length.
    """

    def __init__(self, codecs: list[TextCodec] | None = None):
        self.codecs = default_codecs() if codecs is None else codecs

    def pack(self, text: str) -> tuple[str, str]:
        """
        Compress a string and report which codec produced it.

        Returns:
            (codec name, base64 text).

        Raises:
            CompressionError: If every codec in the chain fails, or the
                chain is empty.
        """
        for codec in self.codecs:
            try:
                payload = codec.encode(text)
            except Exception as e:
                logger.warning("%s compression failed, trying next codec: %s", codec.name, e)
                continue
            return codec.name, base64.b64encode(payload).decode("ascii")

        raise CompressionError(
            f"No codec could compress the input "
            f"(tried {[codec.name for codec in self.codecs]})"
        )

    def compress(self, text: str) -> str:
        """Compress a string to base64 text."""
        return self.pack(text)[1]

    def decompress(self, encoded: str) -> str:
        """
        Reverse compress().

        Raises:
            CorruptPayloadError: If the input is not valid base64, no codec
                claims it, or the claiming codec cannot decode it.
        """
        try:
            payload = base64.b64decode(encoded, validate=True)
        except (binascii.Error, TypeError, ValueError):
            raise CorruptPayloadError("Compressed payload is not valid base64") from None

        for codec in self.codecs:
            if codec.matches(payload):
                return codec.decode(payload)

        raise CorruptPayloadError("No codec recognizes the compressed payload")


def compress_string(text: str) -> str:
    """Compress a string with the default codec chain."""
    return TextCompressor().compress(text)


def decompress_string(encoded: str) -> str:
    """Decompress a string produced by compress_string()."""
    return TextCompressor().decompress(encoded)
