"""
ctxsync - Incremental sync of project text into a remote content-addressed store.

This package provides:
- Cross-platform project path normalization (Windows, Unix, WSL)
- .gitignore-aware traversal with static exclude patterns
- Encoding-tolerant reads and line-bounded, hash-stable chunking
- Incremental, batched upload with retry and partial-failure reporting
- Codebase retrieval queries, as a CLI and an MCP tool
"""

from .models import Blob, IndexOutcome, IndexStats, UploadResult, CollectionResult
from .config import Config
from .exceptions import (
    CtxSyncError,
    InvalidPathError,
    UnreadableFileError,
    StateStoreError,
    MalformedResponseError,
)
from .paths import normalize_project_path
from .exclusion import ExclusionFilter, match_pattern
from .encoding import EncodingReader, decode_text
from .addressing import compute_blob_name
from .store import ProjectStateStore
from .client import RemoteClient, retry_request
from .uploader import BatchUploader
from .scanner import BlobCollector
from .indexer import IndexManager
from .chunkers import ChunkStrategy, LineChunker

__version__ = "0.1.0"

__all__ = [
    # Models
    "Blob",
    "IndexOutcome",
    "IndexStats",
    "UploadResult",
    "CollectionResult",
    # Errors
    "CtxSyncError",
    "InvalidPathError",
    "UnreadableFileError",
    "StateStoreError",
    "MalformedResponseError",
    # Core components
    "Config",
    "normalize_project_path",
    "ExclusionFilter",
    "match_pattern",
    "EncodingReader",
    "decode_text",
    "compute_blob_name",
    "ProjectStateStore",
    "RemoteClient",
    "retry_request",
    "BatchUploader",
    "BlobCollector",
    "IndexManager",
    # Chunkers
    "ChunkStrategy",
    "LineChunker",
]
