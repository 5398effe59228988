"""
Attachment Compression
Compress uploaded files before they are stored as text in the database.

Text-like files (text/*, JSON, XML, CSV) go through the TextCompressor.
Everything else is base64-wrapped unchanged. Each result records its sizes
and ratio so the admin dashboard can report space saved.

The ratio is (1 - compressed/original) * 100 and is allowed to go negative:
base64 and gzip headers make small inputs bigger.
"""

import base64
import binascii
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from akiguard.compression.text import TextCompressor
from akiguard.errors import CorruptPayloadError

logger = logging.getLogger(__name__)


RAW_METHOD = "base64"
TEXT_MIME_TYPES = {"application/json", "application/xml"}
TEXT_EXTENSIONS = (".txt", ".json", ".xml", ".csv")


def compression_ratio(original_size: int, compressed_size: int) -> float:
    """Percentage saved. 0.0 for an empty source."""
    if original_size == 0:
        return 0.0
    return (1 - compressed_size / original_size) * 100


def is_text_file(filename: str, mime_type: str) -> bool:
    """Check whether a file should go through text compression."""
    return (
        mime_type.startswith("text/")
        or mime_type in TEXT_MIME_TYPES
        or filename.lower().endswith(TEXT_EXTENSIONS)
    )


@dataclass
class CompressedFile:
    """A compressed payload plus the metadata needed to report and restore it."""
    data: str
    original_size: int
    compressed_size: int
    compression_ratio: float
    mime_type: str
    filename: str
    method: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Attachment(CompressedFile):
    """A compressed file ready to persist, with its own id and timestamps."""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


def compress_text(
    text: str,
    filename: str,
    mime_type: str = "text/plain",
    compressor: TextCompressor = None,
) -> CompressedFile:
    """Compress text content into a CompressedFile record."""
    compressor = compressor or TextCompressor()
    method, data = compressor.pack(text)
    original_size = len(text.encode("utf-8"))
    return CompressedFile(
        data=data,
        original_size=original_size,
        compressed_size=len(data),
        compression_ratio=compression_ratio(original_size, len(data)),
        mime_type=mime_type,
        filename=filename,
        method=method,
    )


def compress_file(
    data: bytes,
    filename: str,
    mime_type: str,
    compressor: TextCompressor = None,
) -> CompressedFile:
    """
    Compress raw file bytes, choosing the path by type.

    Text files that are not valid UTF-8 are stored uncompressed.
    """
    if is_text_file(filename, mime_type):
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("%s is not UTF-8, storing uncompressed", filename)
        else:
            return compress_text(text, filename, mime_type, compressor)

    return CompressedFile(
        data=base64.b64encode(data).decode("ascii"),
        original_size=len(data),
        compressed_size=len(data),
        compression_ratio=0.0,
        mime_type=mime_type,
        filename=filename,
        method=RAW_METHOD,
    )


def restore_file(record: CompressedFile, compressor: TextCompressor = None) -> bytes:
    """
    Recover the original bytes from a CompressedFile (or Attachment).

    Raises:
        CorruptPayloadError: If the stored data cannot be decoded.
    """
    if record.method == RAW_METHOD:
        try:
            return base64.b64decode(record.data, validate=True)
        except (binascii.Error, ValueError):
            raise CorruptPayloadError(f"Stored data for {record.filename} is not valid base64") from None

    compressor = compressor or TextCompressor()
    if record.method not in {codec.name for codec in compressor.codecs}:
        raise CorruptPayloadError(f"Unknown compression method: {record.method!r}")
    return compressor.decompress(record.data).encode("utf-8")


def build_attachment(
    data: bytes,
    filename: str,
    mime_type: str,
    compressor: TextCompressor = None,
) -> Attachment:
    """Compress a file and wrap it as an Attachment with a fresh id."""
    compressed = compress_file(data, filename, mime_type, compressor)
    attachment = Attachment(**vars(compressed))
    logger.info(
        "Compressed attachment %s: %.2f KB -> %.2f KB (%.1f%%)",
        attachment.filename,
        attachment.original_size / 1024,
        attachment.compressed_size / 1024,
        attachment.compression_ratio,
    )
    return attachment


def compress_files(files, on_progress=None, compressor: TextCompressor = None) -> list[Attachment]:
    """
    Compress a batch of files.

    Args:
        files: Iterable of (data, filename, mime_type) tuples.
        on_progress: Optional callback(percent, current, total), called after
            each file that compresses successfully.
        compressor: Codec chain to use. Defaults to gzip then run-length.

    Returns:
        Attachments for every file that compressed. Failures are logged
        and skipped.
    """
    files = list(files)
    total = len(files)
    results = []

    for index, (data, filename, mime_type) in enumerate(files, start=1):
        try:
            attachment = build_attachment(data, filename, mime_type, compressor)
        except Exception:
            logger.exception("Failed to compress file %s", filename)
            continue

        results.append(attachment)
        if on_progress is not None:
            on_progress(index / total * 100, index, total)

    return results


def compression_stats(attachments: list[CompressedFile]) -> dict:
    """Summarize sizes and savings across a set of compressed files."""
    total_original = sum(a.original_size for a in attachments)
    total_compressed = sum(a.compressed_size for a in attachments)

    average_ratio = 0.0
    if attachments:
        average_ratio = sum(a.compression_ratio for a in attachments) / len(attachments)

    return {
        "total_files": len(attachments),
        "total_original_size": total_original,
        "total_compressed_size": total_compressed,
        "total_saved": total_original - total_compressed,
        "average_compression_ratio": average_ratio,
        "space_saved_percentage": compression_ratio(total_original, total_compressed),
    }
