"""
Encoding detection and text decoding for ctxsync.

Files are read as bytes and decoded with the first encoding from a fixed
priority list that produces no replacement characters.
"""

import logging
from pathlib import Path
from typing import Iterable

from .exceptions import UnreadableFileError

logger = logging.getLogger(__name__)

SUPPORTED_ENCODINGS = ("utf-8", "gbk", "gb2312", "latin-1")

REPLACEMENT_CHAR = "\ufffd"

BINARY_SAMPLE_SIZE = 8192
BINARY_RATIO_THRESHOLD = 0.3
BINARY_INDICATORS = frozenset([*range(0x01, 0x09), *range(0x0E, 0x20)])

SHORT_CONTENT_LENGTH = 100
SHORT_CONTENT_MAX_REPLACEMENTS = 5
LONG_CONTENT_MAX_RATIO = 0.05


def is_binary(data: bytes) -> bool:
    """
    Guess whether raw bytes are binary rather than text.

    A NUL byte in the first 8 KiB is treated as binary, as is a sample where
    more than 30% of the bytes are control characters.

    Args:
        data: Raw file content

    Returns:
        True if the content looks binary
    """
    if not data:
        return False

    sample = data[:BINARY_SAMPLE_SIZE]
    if b"\x00" in sample:
        return True

    control = sum(1 for byte in sample if byte in BINARY_INDICATORS)
    return control / len(sample) > BINARY_RATIO_THRESHOLD


def within_replacement_threshold(text: str, replacements: int) -> bool:
    """Check whether a decode with `replacements` markers is still usable."""
    if len(text) < SHORT_CONTENT_LENGTH:
        return replacements <= SHORT_CONTENT_MAX_REPLACEMENTS
    return replacements / len(text) <= LONG_CONTENT_MAX_RATIO


def decode_text(data: bytes, encodings: Iterable[str] = SUPPORTED_ENCODINGS) -> str:
    """
    Decode bytes trying several encodings in order.

    The first encoding that decodes without replacement characters wins. If
    none is clean, the encoding with the fewest replacements is used as long
    as the count stays within the threshold.

    Args:
        data: Raw file content
        encodings: Encodings to try, in priority order

    Returns:
        Decoded text

    Raises:
        UnreadableFileError: If the content is binary or no encoding is good enough
    """
    if not data:
        return ""

    if is_binary(data):
        raise UnreadableFileError("Cannot decode binary file as text")

    best_text = None
    best_encoding = None
    min_replacements = None

    for encoding in encodings:
        try:
            text = data.decode(encoding, errors="replace")
        except LookupError:
            logger.debug(f"Unknown encoding skipped: {encoding}")
            continue

        replacements = text.count(REPLACEMENT_CHAR)
        if replacements == 0:
            return text

        if min_replacements is None or replacements < min_replacements:
            best_text, best_encoding, min_replacements = text, encoding, replacements

    if best_text is None or not within_replacement_threshold(best_text, min_replacements):
        raise UnreadableFileError("File appears to be binary or uses an unsupported encoding")

    logger.debug(f"Decoded with {best_encoding} ({min_replacements} replacement characters)")
    return best_text


class EncodingReader:
    """
    Reads files with a tracked text extension and decodes them.
    """

    def __init__(self, text_extensions: Iterable[str], encodings: Iterable[str] = SUPPORTED_ENCODINGS):
        """
        Initialize the reader.

        Args:
            text_extensions: File suffixes (with leading dot) that are treated as text
            encodings: Encodings to try, in priority order
        """
        self.text_extensions = {ext.lower() for ext in text_extensions}
        self.encodings = tuple(encodings)

    def can_read(self, path: Path) -> bool:
        """Check whether the file extension is tracked."""
        return Path(path).suffix.lower() in self.text_extensions

    def read(self, path: Path) -> str:
        """
        Read and decode one file.

        Raises:
            UnreadableFileError: If the extension is not tracked or the content
                cannot be decoded
            OSError: If the file cannot be read
        """
        path = Path(path)
        if not self.can_read(path):
            raise UnreadableFileError(f"Not a tracked text extension: {path.suffix or path.name}")

        data = path.read_bytes()
        try:
            return decode_text(data, self.encodings)
        except UnreadableFileError as e:
            raise UnreadableFileError(f"{path}: {e}") from e
