"""
Run-length codec.
The fallback path when gzip is unavailable or fails.

Encoding, applied to maximal runs of one character (capped at 255):
- run longer than 3, or any run of newline, space or "~":
      "~" + three-digit zero-padded count + character
- anything else: the characters, literally

"~" never appears literally in the output, so the decoder always knows a
"~" starts an escape, and the fixed-width count means a digit character
after the count is never mistaken for part of it.

    "aaaaab1"  -> "~005ab1"
    "x   9999" -> "x~003 ~0049"

RunLengthCodec frames the escaped text with the decoded character count,
"<count>:<escaped>", so a payload cut short anywhere fails to decode:

    "aaaaab1"  -> b"7:~005ab1"
"""

import re

from akiguard.compression.base import TextCodec
from akiguard.errors import CorruptPayloadError


ESCAPE = "~"
COUNT_WIDTH = 3
MAX_RUN = 255
MIN_RUN = 4       # Runs shorter than this stay literal
ALWAYS_ESCAPED = {"\n", " ", ESCAPE}
FRAME_SEPARATOR = ":"

_COUNT = re.compile(r"[0-9]{3}")
_LENGTH = re.compile(r"0|[1-9][0-9]*")


def encode_runs(text: str) -> str:
    """Apply the run-length escape to a string."""
    out = []
    i = 0
    while i < len(text):
        char = text[i]
        count = 1
        while i + count < len(text) and text[i + count] == char and count < MAX_RUN:
            count += 1

        if count >= MIN_RUN or char in ALWAYS_ESCAPED:
            out.append(f"{ESCAPE}{count:0{COUNT_WIDTH}d}{char}")
        else:
            out.append(char * count)
        i += count
    return "".join(out)


def decode_runs(encoded: str) -> str:
    """
    Expand the output of encode_runs().

    Raises:
        CorruptPayloadError: On a truncated escape or an invalid count.
    """
    out = []
    i = 0
    while i < len(encoded):
        if encoded[i] != ESCAPE:
            out.append(encoded[i])
            i += 1
            continue

        count_field = encoded[i + 1:i + 1 + COUNT_WIDTH]
        char_index = i + 1 + COUNT_WIDTH
        if not _COUNT.fullmatch(count_field) or char_index >= len(encoded):
            raise CorruptPayloadError(f"Truncated run escape at offset {i}")

        count = int(count_field)
        if not 1 <= count <= MAX_RUN:
            raise CorruptPayloadError(f"Invalid run length at offset {i}")

        out.append(encoded[char_index] * count)
        i = char_index + 1
    return "".join(out)


class RunLengthCodec(TextCodec):
    """Length-framed run-length UTF-8. Matches any payload that is not claimed first."""

    name = "rle"

    def encode(self, text: str) -> bytes:
        return f"{len(text)}{FRAME_SEPARATOR}{encode_runs(text)}".encode("utf-8")

    def decode(self, payload: bytes) -> str:
        """
        Check the length frame, then expand the escapes.

        Raises:
            CorruptPayloadError: If the payload is not UTF-8, the frame header
                is missing, or the decoded length disagrees with the header.
        """
        try:
            framed = payload.decode("utf-8")
        except UnicodeDecodeError:
            raise CorruptPayloadError("Run-length payload is not UTF-8") from None

        length_field, separator, encoded = framed.partition(FRAME_SEPARATOR)
        if not separator or not _LENGTH.fullmatch(length_field):
            raise CorruptPayloadError("Run-length payload has no length header")

        text = decode_runs(encoded)
        if len(text) != int(length_field):
            raise CorruptPayloadError("Run-length payload length mismatch")
        return text

    def matches(self, payload: bytes) -> bool:
        return True
