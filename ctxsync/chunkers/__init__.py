"""
Chunking strategies for ctxsync.

Provides strategies for splitting a decoded file into blobs:
- LineChunker: line-bounded chunks that preserve terminators byte-for-byte
"""

from .base import ChunkStrategy
from .lines import LineChunker, split_lines_keepends

__all__ = [
    "ChunkStrategy",
    "LineChunker",
    "split_lines_keepends",
]
