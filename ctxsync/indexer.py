"""
Core indexing logic for ctxsync.

Orchestrates blob collection, content addressing, diffing against the
project record, batched upload, and codebase retrieval queries.
"""

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from .addressing import blob_names
from .chunkers import ChunkStrategy, LineChunker
from .client import RemoteClient, retry_request
from .config import Config
from .encoding import EncodingReader
from .exceptions import InvalidPathError, StateStoreError
from .models import IndexOutcome, IndexStats
from .paths import normalize_project_path
from .progress import ProgressCallback
from .scanner import BlobCollector
from .store import ProjectStateStore
from .uploader import BatchUploader

logger = logging.getLogger(__name__)

NO_CONTEXT_MESSAGE = "No relevant code context found for your query."


class IndexManager:
    """
    Incremental indexer for a remote content-addressed store.

    Features:
    - Only blobs not yet recorded for the project are uploaded
    - Batches that fail are reported, the rest still get recorded
    - Retrieval always re-indexes first so queries never see stale state

    Calls for the same project path must be serialized by the caller; the
    project record is not locked.
    """

    def __init__(
        self,
        store: ProjectStateStore,
        client: RemoteClient,
        collector: BlobCollector,
        uploader: BatchUploader,
        query_retries: int = 3,
        query_retry_delay: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the index manager.

        Args:
            store: Project record store
            client: Remote client (owned by the caller)
            collector: Blob collector for traversal, decoding and chunking
            uploader: Batch uploader sharing `client`
            query_retries: Attempts for the retrieval query
            query_retry_delay: Base backoff delay for the retrieval query
            sleep: Sleep function (injectable for tests)
        """
        self.store = store
        self.client = client
        self.collector = collector
        self.uploader = uploader
        self.query_retries = query_retries
        self.query_retry_delay = query_retry_delay
        self.sleep = sleep

    @classmethod
    def from_config(
        cls,
        config: Config,
        client: RemoteClient,
        chunker: Optional[ChunkStrategy] = None,
        progress_callback: Optional[ProgressCallback] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "IndexManager":
        """
        Build an index manager from configuration.

        Args:
            config: Loaded configuration
            client: Remote client (owned by the caller)
            chunker: Chunking strategy (defaults to LineChunker)
            progress_callback: Optional callback(ProgressEvent)
            sleep: Sleep function (injectable for tests)

        Returns:
            Configured IndexManager
        """
        chunker = chunker or LineChunker(
            max_lines_per_blob=config.get("indexer", "max_lines_per_blob", default=800)
        )
        reader = EncodingReader(config.get("indexer", "text_extensions", default=[]))
        collector = BlobCollector(
            reader,
            chunker,
            exclude_patterns=config.get("indexer", "exclude", default=[]),
            max_file_size=config.get("indexer", "max_file_size", default=1048576),
            max_workers=config.get("performance", "max_workers"),
            progress_callback=progress_callback,
        )
        uploader = BatchUploader(
            client,
            batch_size=config.get("indexer", "batch_size", default=10),
            max_retries=config.get("retry", "max_retries", default=3),
            retry_delay=config.get("retry", "upload_delay", default=1.0),
            sleep=sleep,
            progress_callback=progress_callback,
        )
        logger.info(
            f"IndexManager initialized with state file: {config.state_file}, "
            f"batch_size: {uploader.batch_size}, "
            f"exclude_patterns: {len(collector.exclude_patterns)} patterns"
        )
        return cls(
            store=ProjectStateStore(config.state_file),
            client=client,
            collector=collector,
            uploader=uploader,
            query_retries=config.get("retry", "max_retries", default=3),
            query_retry_delay=config.get("retry", "query_delay", default=2.0),
            sleep=sleep,
        )

    def index_project(self, project_root: str) -> IndexOutcome:
        """
        Incrementally index a project directory.

        Args:
            project_root: Project root path in any supported spelling

        Returns:
            IndexOutcome; this method does not raise
        """
        try:
            project_path = normalize_project_path(project_root)
        except InvalidPathError as e:
            return IndexOutcome(status="error", message=f"Invalid project path: {e}")

        logger.info(f"Indexing project from {project_path}")

        try:
            return self._index_project(project_path)
        except Exception as e:
            logger.error(f"Failed to index project {project_path}: {e}", exc_info=True)
            return IndexOutcome(status="error", message=str(e), project_path=project_path)

    def _index_project(self, project_path: str) -> IndexOutcome:
        root = Path(project_path)
        if not root.exists():
            return IndexOutcome(
                status="error",
                message=(
                    f"Project root path does not exist: {project_path}. "
                    "Please check if the path is correct and accessible."
                ),
                project_path=project_path,
            )
        if not root.is_dir():
            return IndexOutcome(
                status="error",
                message=f"Project root path is not a directory: {project_path}",
                project_path=project_path,
            )

        collection = self.collector.collect(root)
        named_blobs = blob_names(collection.blobs)
        if not named_blobs:
            return IndexOutcome(
                status="error", message="No text files found in project", project_path=project_path
            )

        projects = self.store.load()
        recorded = projects.get(project_path, set())

        existing = [name for name in named_blobs if name in recorded]
        to_upload = [blob for name, blob in named_blobs.items() if name not in recorded]

        logger.info(
            f"Incremental indexing: total={len(named_blobs)}, existing={len(existing)}, "
            f"new={len(to_upload)}"
        )

        upload = self.uploader.upload(to_upload)

        if to_upload and not upload.blob_names:
            if upload.failed_batches:
                message = "All batches failed. Failed batches: " + ", ".join(map(str, upload.failed_batches))
            else:
                message = "No blob names returned from API"
            logger.error(f"Project {project_path} not indexed: {message}")
            return IndexOutcome(
                status="error",
                message=message,
                project_path=project_path,
                failed_batches=upload.failed_batches,
            )

        if not to_upload:
            logger.info("No new blobs to upload, all blobs already exist in index")

        # Additive merge: names recorded for files deleted since the last run are kept
        merged = recorded | set(upload.blob_names)
        projects[project_path] = merged
        try:
            self.store.save(projects)
        except StateStoreError as e:
            return IndexOutcome(
                status="error",
                message=f"Uploaded blobs could not be recorded: {e}",
                project_path=project_path,
                failed_batches=upload.failed_batches,
            )

        stats = IndexStats(
            total_blobs=len(merged),
            existing_blobs=len(existing),
            new_blobs=len(upload.blob_names),
            skipped_blobs=len(existing),
            skipped_files=collection.files_skipped,
        )

        if to_upload:
            message = (
                f"Project indexed with {stats.total_blobs} total blobs "
                f"(existing: {stats.existing_blobs}, new: {stats.new_blobs}, "
                f"batches: {upload.successful_batches}/{upload.total_batches} successful)"
            )
        else:
            message = f"Project indexed with {stats.total_blobs} total blobs (all existing, no upload needed)"

        if upload.failed_batches:
            message += ". Failed batches: " + ", ".join(map(str, upload.failed_batches))
            logger.warning(f"Project {project_path} indexed with some failures: {message}")
            status = "partial_success"
        else:
            logger.info(f"Project {project_path} indexed successfully: {message}")
            status = "success"

        return IndexOutcome(
            status=status,
            message=message,
            project_path=project_path,
            failed_batches=upload.failed_batches,
            stats=stats,
        )

    def codebase_retrieval(self, project_root: str, query: str) -> str:
        """
        Index a project, then ask the retrieval service about it.

        Args:
            project_root: Project root path in any supported spelling
            query: Natural language information request

        Returns:
            Retrieved context, or a message starting with "Error:"; this
            method does not raise
        """
        if not query or not query.strip():
            return "Error: query is required"

        try:
            project_path = normalize_project_path(project_root)
        except InvalidPathError as e:
            return f"Error: Invalid project path - {e}"

        logger.info(f"Searching context in project {project_path} with query: {query}")

        try:
            outcome = self.index_project(project_path)
            if outcome.status == "error":
                return f"Error: Failed to index project before search. {outcome.message}"

            if outcome.stats:
                logger.info(
                    f"Auto-indexing completed: total={outcome.stats.total_blobs}, "
                    f"existing={outcome.stats.existing_blobs}, new={outcome.stats.new_blobs}"
                )

            # look up under the key index_project recorded
            project_path = outcome.project_path or project_path
            names = sorted(self.store.get_project(project_path))
            if not names:
                return f"Error: No blobs found for project {project_path} after indexing."

            logger.info(f"Performing search with {len(names)} blobs...")
            try:
                result = retry_request(
                    lambda: self.client.codebase_retrieval(query, names),
                    max_retries=self.query_retries,
                    retry_delay=self.query_retry_delay,
                    sleep=self.sleep,
                )
            except Exception as e:
                logger.error(f"Search request failed after retries: {e}")
                return f"Error: Search request failed after {self.query_retries} retries. {e}"

            if not result:
                logger.warning(f"Search returned empty result for project {project_path}")
                return NO_CONTEXT_MESSAGE

            logger.info(f"Search completed for project {project_path}")
            return result

        except Exception as e:
            logger.error(f"Failed to search context in project {project_path}: {e}", exc_info=True)
            return f"Error: {e}"

    def __repr__(self) -> str:
        """String representation."""
        return f"IndexManager(store={self.store}, client={self.client})"
