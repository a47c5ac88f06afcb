"""
Base chunking strategy interface for ctxsync.

Defines the abstract base class that all chunking strategies must implement.
"""

from abc import ABC, abstractmethod

from ..models import Blob


class ChunkStrategy(ABC):
    """
    Abstract base class for chunking strategies.

    A strategy must be deterministic: the same (path, content) pair always
    yields the same blobs, since blob ids are derived from them.
    """

    @abstractmethod
    def chunk(self, path: str, content: str) -> list[Blob]:
        """
        Split a file into blobs.

        Args:
            path: File path relative to the project root, "/"-separated
            content: Decoded file content

        Returns:
            Blobs whose contents concatenate back to `content`
        """
        pass
