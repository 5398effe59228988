"""
Compression codecs and attachment records.
"""

from akiguard.compression.base import TextCodec
from akiguard.compression.gzip_codec import GzipCodec
from akiguard.compression.rle import RunLengthCodec
from akiguard.compression.text import TextCompressor, compress_string, decompress_string
from akiguard.compression.files import (
    Attachment,
    CompressedFile,
    build_attachment,
    compress_file,
    compress_files,
    compress_text,
    compression_stats,
    restore_file,
)

__all__ = [
    "TextCodec",
    "GzipCodec",
    "RunLengthCodec",
    "TextCompressor",
    "compress_string",
    "decompress_string",
    "Attachment",
    "CompressedFile",
    "build_attachment",
    "compress_file",
    "compress_files",
    "compress_text",
    "compression_stats",
    "restore_file",
]
