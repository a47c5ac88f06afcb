"""
Persistent project record for ctxsync.

Stores, per normalized project path, the set of blob names believed to
exist in the remote store. The whole record is one JSON document.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Mapping, Iterable

from .exceptions import StateStoreError

logger = logging.getLogger(__name__)


class ProjectStateStore:
    """
    JSON file mapping project paths to uploaded blob names.

    The store does no locking. Two runs against the same project must be
    serialized by the caller, otherwise the last writer wins.
    """

    def __init__(self, path: Path):
        """
        Initialize the store.

        Args:
            path: Location of the JSON record file
        """
        self.path = Path(path)

    def load(self) -> dict[str, set[str]]:
        """
        Load the project record.

        Returns:
            Mapping of project path to blob names; empty if the file is missing
            or unreadable
        """
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load project record {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.error(f"Project record {self.path} is not a JSON object, ignoring it")
            return {}

        projects = {}
        for project_path, names in data.items():
            if not isinstance(names, list):
                logger.warning(f"Ignoring malformed entry for {project_path} in {self.path}")
                continue
            projects[project_path] = {str(name) for name in names}
        return projects

    def save(self, projects: Mapping[str, Iterable[str]]) -> None:
        """
        Replace the project record on disk.

        The document is written to a temporary file next to the record and
        moved into place, so readers never see a half-written file.

        Args:
            projects: Mapping of project path to blob names

        Raises:
            StateStoreError: If the record cannot be written
        """
        document = {key: sorted(set(names)) for key, names in projects.items()}
        content = json.dumps(document, indent=2, sort_keys=True)

        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            logger.error(f"Failed to save project record {self.path}: {e}")
            raise StateStoreError(f"Failed to save project record {self.path}: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

        logger.debug(f"Saved project record with {len(document)} project(s) to {self.path}")

    def get_project(self, project_path: str) -> set[str]:
        """Get the recorded blob names for one project."""
        return self.load().get(project_path, set())

    def list_projects(self) -> dict[str, int]:
        """Get the number of recorded blob names for each project."""
        return {key: len(names) for key, names in sorted(self.load().items())}

    def remove_project(self, project_path: str) -> bool:
        """
        Drop one project from the record.

        Returns:
            True if the project was present
        """
        projects = self.load()
        if project_path not in projects:
            return False
        del projects[project_path]
        self.save(projects)
        logger.info(f"Removed project record for {project_path}")
        return True

    def __repr__(self) -> str:
        """String representation."""
        return f"ProjectStateStore(path={self.path})"
