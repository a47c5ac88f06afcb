"""
Line-bounded chunking strategy.

Splits oversized files into contiguous runs of lines while keeping every
line terminator, so joining the chunks reproduces the file exactly.
"""

import logging
import math

from .base import ChunkStrategy
from ..models import Blob

logger = logging.getLogger(__name__)


def split_lines_keepends(text: str) -> list[str]:
    """
    Split text into lines, keeping "\\n", "\\r\\n" and lone "\\r" terminators.

    Unlike str.splitlines, only these three terminators break lines, so
    form feeds and Unicode line separators stay inside a line.

    Args:
        text: Text to split

    Returns:
        Lines with their terminators; a trailing unterminated line is kept
    """
    lines = []
    start = 0
    i = 0
    length = len(text)

    while i < length:
        char = text[i]
        if char == "\n":
            lines.append(text[start:i + 1])
            start = i + 1
        elif char == "\r":
            if i + 1 < length and text[i + 1] == "\n":
                i += 1
            lines.append(text[start:i + 1])
            start = i + 1
        i += 1

    if start < length:
        lines.append(text[start:])

    return lines


class LineChunker(ChunkStrategy):
    """
    Splits files longer than `max_lines_per_blob` lines into numbered chunks.

    Chunk boundaries depend only on the line count and the ceiling, so
    unchanged content always produces the same blobs.
    """

    def __init__(self, max_lines_per_blob: int = 800):
        """
        Initialize the line chunker.

        Args:
            max_lines_per_blob: Maximum number of lines in one blob
        """
        if max_lines_per_blob < 1:
            raise ValueError(f"max_lines_per_blob must be positive, got {max_lines_per_blob}")
        self.max_lines_per_blob = max_lines_per_blob

    def chunk(self, path: str, content: str) -> list[Blob]:
        """
        Split content into line-bounded blobs.

        Args:
            path: File path relative to the project root
            content: Decoded file content

        Returns:
            A single blob when the file fits, else blobs with paths
            "<path>#chunk<i>of<n>"
        """
        lines = split_lines_keepends(content)
        total_lines = len(lines)

        if total_lines <= self.max_lines_per_blob:
            return [Blob(path=path, content=content)]

        num_chunks = math.ceil(total_lines / self.max_lines_per_blob)
        blobs = []
        for index in range(num_chunks):
            start = index * self.max_lines_per_blob
            chunk_content = "".join(lines[start:start + self.max_lines_per_blob])
            blobs.append(Blob(path=f"{path}#chunk{index + 1}of{num_chunks}", content=chunk_content))

        logger.info(f"Split file {path} ({total_lines} lines) into {num_chunks} chunks")
        return blobs
