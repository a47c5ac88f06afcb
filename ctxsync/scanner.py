"""
Blob collection for ctxsync.

Walks a project directory, reads every included text file and chunks it into
blobs. Collection only reads; nothing is uploaded or persisted here.
"""

import concurrent.futures
import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from .chunkers import ChunkStrategy
from .encoding import EncodingReader
from .exceptions import UnreadableFileError
from .exclusion import ExclusionFilter
from .models import CollectionResult
from .progress import ProgressCallback, ProgressReporter

logger = logging.getLogger(__name__)


class BlobCollector:
    """
    Collects blobs from a project directory.

    Features:
    - .gitignore and exclude-pattern support, pruning excluded directories
    - Symlinks pointing outside the project are skipped
    - Concurrent file reads, deterministic blob order
    """

    def __init__(
        self,
        reader: EncodingReader,
        chunker: ChunkStrategy,
        exclude_patterns: Iterable[str] = (),
        max_file_size: int = 1048576,
        max_workers: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """
        Initialize the collector.

        Args:
            reader: Reader deciding which files are text and decoding them
            chunker: Strategy splitting decoded files into blobs
            exclude_patterns: `*`/`?` glob patterns excluded in addition to .gitignore
            max_file_size: Files larger than this many bytes are skipped
            max_workers: Thread pool size for file reads
            progress_callback: Optional callback(ProgressEvent) per file read
        """
        self.reader = reader
        self.chunker = chunker
        self.exclude_patterns = list(exclude_patterns)
        self.max_file_size = max_file_size
        self.max_workers = max_workers or min(8, (os.cpu_count() or 1))
        self.progress_callback = progress_callback

    def collect(self, root: Path) -> CollectionResult:
        """
        Collect blobs from every included text file under `root`.

        Args:
            root: Project root directory

        Returns:
            CollectionResult with blobs in path order
        """
        root = Path(root).resolve()
        exclusion = ExclusionFilter.for_root(root, self.exclude_patterns)

        files, excluded = self.discover_files(root, exclusion)
        logger.debug(f"Found {len(files)} candidate text files under {root}")

        result = CollectionResult(excluded=excluded)
        candidates = []
        for rel_path, full_path in files:
            try:
                size = full_path.stat().st_size
            except OSError as e:
                logger.warning(f"Cannot stat file {full_path}: {e}")
                result.files_skipped += 1
                continue
            if size > self.max_file_size:
                logger.warning(
                    f"Skipping large file: {rel_path} "
                    f"({size / 1024 / 1024:.1f}MB > {self.max_file_size / 1024 / 1024:.1f}MB limit)"
                )
                result.files_skipped += 1
                continue
            candidates.append((rel_path, full_path))

        reporter = None
        if self.progress_callback:
            reporter = ProgressReporter(len(candidates), stage="collect", callback=self.progress_callback)

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            contents = executor.map(self._read_file, [full_path for _, full_path in candidates])

            for (rel_path, _), content in zip(candidates, contents):
                if reporter:
                    reporter.update(rel_path)

                if content is None:
                    result.files_skipped += 1
                    continue

                file_blobs = self.chunker.chunk(rel_path, content)
                result.blobs.extend(file_blobs)
                result.files_read += 1
                logger.debug(f"Collected file: {rel_path} ({len(file_blobs)} blob(s))")

        logger.info(
            f"Collected {len(result.blobs)} blobs from {result.files_read} files in {root} "
            f"(excluded {result.excluded} files/directories, skipped {result.files_skipped} files)"
        )
        return result

    def discover_files(self, root: Path, exclusion: ExclusionFilter) -> tuple[list[tuple[str, Path]], int]:
        """
        Walk the tree and list tracked text files.

        Excluded directories are pruned before descending.

        Args:
            root: Resolved project root
            exclusion: Exclusion filter for this root

        Returns:
            Tuple of ([(relative_path, full_path), ...], excluded_count)
        """
        files: list[tuple[str, Path]] = []
        excluded = 0
        stack = [root]

        while stack:
            directory = stack.pop()
            try:
                with os.scandir(directory) as it:
                    entries = sorted(it, key=lambda entry: entry.name)
            except OSError as e:
                logger.warning(f"Cannot list directory {directory}: {e}")
                continue

            subdirs = []
            for entry in entries:
                full_path = Path(entry.path)
                try:
                    if entry.is_symlink():
                        target = full_path.resolve()
                        if not target.is_relative_to(root):
                            logger.warning(f"Skipping symlink outside project root: {full_path} -> {target}")
                            continue
                        if target.is_dir():
                            logger.debug(f"Not following directory symlink: {full_path}")
                            continue
                        is_dir, is_file = False, target.is_file()
                    else:
                        is_dir = entry.is_dir(follow_symlinks=False)
                        is_file = entry.is_file(follow_symlinks=False)
                except OSError as e:
                    logger.warning(f"Cannot inspect {full_path}: {e}")
                    continue

                if is_dir:
                    if exclusion.is_excluded(full_path, is_dir=True):
                        excluded += 1
                        logger.debug(f"Excluded directory: {full_path}")
                        continue
                    subdirs.append(full_path)
                elif is_file:
                    if exclusion.is_excluded(full_path, is_dir=False):
                        excluded += 1
                        logger.debug(f"Excluded file: {full_path}")
                        continue
                    if not self.reader.can_read(full_path):
                        continue
                    rel_path = full_path.relative_to(root).as_posix()
                    files.append((rel_path, full_path))

            stack.extend(reversed(subdirs))

        files.sort(key=lambda item: item[0])
        return files, excluded

    def _read_file(self, path: Path) -> Optional[str]:
        """Read one file, returning None if it is unreadable."""
        try:
            return self.reader.read(path)
        except UnreadableFileError as e:
            logger.warning(f"Skipping unreadable file: {e}")
        except OSError as e:
            logger.warning(f"Failed to read file {path}: {e}")
        return None

