"""
Exclusion rules for ctxsync traversal.

Combines the nearest .gitignore (searched upward from the index root) with a
static list of exclude patterns from configuration.
"""

import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional
import pathspec

logger = logging.getLogger(__name__)

BUILTIN_GITIGNORE_RULES = [".git"]


@lru_cache(maxsize=512)
def _compile_pattern(pattern: str) -> re.Pattern:
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def match_pattern(value: str, pattern: str) -> bool:
    """
    Match a string against a simple glob pattern.

    Only two wildcards are supported: `*` matches any run of characters
    (including `/`) and `?` matches exactly one character. Brackets, braces
    and every other character are matched literally. The whole string must
    match.

    Args:
        value: String to test (a path segment or a relative path)
        pattern: Glob pattern

    Returns:
        True if the pattern matches the entire string
    """
    return _compile_pattern(pattern).fullmatch(value) is not None


def find_gitignore(start: Path) -> Optional[Path]:
    """
    Find the nearest .gitignore at or above a directory.

    Args:
        start: Directory to start searching from

    Returns:
        Path to the .gitignore file, or None if no ancestor has one
    """
    current = start.resolve()
    while True:
        candidate = current / ".gitignore"
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


class ExclusionFilter:
    """
    Decides whether a path is excluded from indexing.

    Gitignore rules are evaluated relative to the directory holding the
    .gitignore file, which may be an ancestor of the index root. Exclude
    patterns are evaluated against every segment of the path relative to the
    index root and against that relative path as a whole.
    """

    def __init__(
        self,
        root: Path,
        gitignore_root: Path,
        gitignore_spec: pathspec.PathSpec,
        exclude_patterns: Iterable[str] = (),
    ):
        self.root = root
        self.gitignore_root = gitignore_root
        self.gitignore_spec = gitignore_spec
        self.exclude_patterns = list(exclude_patterns)

    @classmethod
    def for_root(cls, root: Path, exclude_patterns: Iterable[str] = ()) -> "ExclusionFilter":
        """
        Build the filter for an index root.

        Args:
            root: Directory being indexed
            exclude_patterns: Additional `*`/`?` glob patterns

        Returns:
            ExclusionFilter for this root
        """
        root = Path(root).resolve()
        lines = list(BUILTIN_GITIGNORE_RULES)
        gitignore_root = root

        gitignore_path = find_gitignore(root)
        if gitignore_path is not None:
            gitignore_root = gitignore_path.parent
            try:
                with open(gitignore_path, "r", encoding="utf-8", errors="replace") as f:
                    lines.extend(f.read().splitlines())
                logger.info(f"Loaded .gitignore from {gitignore_path} (root: {gitignore_root})")
            except OSError as e:
                logger.warning(f"Failed to read .gitignore {gitignore_path}: {e}")
        else:
            logger.info(f"No .gitignore found at or above {root}")

        spec = pathspec.GitIgnoreSpec.from_lines(lines)
        return cls(root, gitignore_root, spec, exclude_patterns)

    def is_excluded(self, full_path: Path, is_dir: bool) -> bool:
        """
        Check whether a file or directory should be skipped.

        Args:
            full_path: Absolute path of the entry
            is_dir: Whether the entry is a directory

        Returns:
            True if the entry is excluded
        """
        gitignore_rel = _relative_posix(full_path, self.gitignore_root)
        if gitignore_rel:
            test_path = gitignore_rel + "/" if is_dir else gitignore_rel
            if self.gitignore_spec.match_file(test_path):
                logger.debug(f"Excluded by .gitignore: {test_path}")
                return True

        rel = _relative_posix(full_path, self.root)
        if not rel:
            return False

        segments = rel.split("/")
        for pattern in self.exclude_patterns:
            if any(match_pattern(segment, pattern) for segment in segments):
                return True
            if match_pattern(rel, pattern):
                return True
        return False


def _relative_posix(path: Path, base: Path) -> Optional[str]:
    """Relative path with "/" separators, or None if path is not under base."""
    try:
        rel = os.path.relpath(path, base)
    except ValueError:
        # different drives on Windows
        return None
    if rel == "." or rel == os.pardir or rel.startswith(os.pardir + os.sep):
        return None
    return rel.replace(os.sep, "/")
