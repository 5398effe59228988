"""
Base class for all text codecs.
Every compression path implements this interface.
"""

from abc import ABC, abstractmethod


class TextCodec(ABC):
    """Abstract base class for reversible text-to-bytes codecs."""

    name: str = ""

    @abstractmethod
    def encode(self, text: str) -> bytes:
        """
        Compress a string into raw bytes.

        Args:
            text: The string to compress.

        Returns:
            Compressed bytes (not yet base64 encoded).
        """

    @abstractmethod
    def decode(self, payload: bytes) -> str:
        """
        Reverse encode() exactly.

        Args:
            payload: Bytes produced by this codec's encode().

        Returns:
            The original string.

        Raises:
            CorruptPayloadError: If the bytes were not produced by this codec.
        """

    @abstractmethod
    def matches(self, payload: bytes) -> bool:
        """Check whether raw bytes look like this codec's output."""
