"""
Project path normalization for ctxsync.

Project paths are used as keys in the project record, so every spelling of
the same directory (Windows drive form, WSL UNC form, `/mnt/<drive>` form)
has to collapse to one string.
"""

import logging
import ntpath
import posixpath
import re
import sys
from typing import Optional

from .exceptions import InvalidPathError

logger = logging.getLogger(__name__)

_WSL_UNC_PREFIXES = ("\\\\wsl$\\", "//wsl$/")
_MNT_DRIVE_RE = re.compile(r"^/mnt/([a-zA-Z])/(.*)$")


def _strip_trailing_slash(path: str, keep: int) -> str:
    """Remove trailing slashes, never shortening the path below `keep` chars."""
    while len(path) > keep and path.endswith("/"):
        path = path[:-1]
    return path


def _from_mnt_drive(path: str) -> Optional[str]:
    """Rewrite /mnt/<drive>/rest to <DRIVE>:/rest, or None if path is not a mount path."""
    match = _MNT_DRIVE_RE.match(path)
    if not match:
        return None
    return _strip_trailing_slash(f"{match.group(1).upper()}:/{match.group(2)}", keep=3)


def _resolve(path: str, platform: str) -> str:
    pathmod = ntpath if platform == "win32" else posixpath
    return pathmod.abspath(path).replace("\\", "/")


def normalize_project_path(path: Optional[str], platform: Optional[str] = None) -> str:
    """
    Normalize a user-supplied project path.

    Handles:
    - WSL UNC paths: \\\\wsl$\\Ubuntu\\home\\user -> /home/user
    - /mnt/<drive>/... paths on a Windows host: /mnt/c/work -> C:/work,
      including those reached through a WSL UNC path
    - POSIX absolute paths: separators normalized, trailing slash removed
    - Anything else: resolved against the current working directory

    Args:
        path: Path as supplied by the user
        platform: Host platform (defaults to sys.platform)

    Returns:
        Absolute path using "/" separators without a trailing slash;
        normalizing the result again returns it unchanged

    Raises:
        InvalidPathError: If path is None or empty
    """
    if path is None or not isinstance(path, str):
        raise InvalidPathError("Path cannot be null or undefined")

    trimmed = path.strip()
    if not trimmed:
        raise InvalidPathError("Path cannot be empty")

    platform = platform or sys.platform

    if trimmed.startswith(_WSL_UNC_PREFIXES):
        parts = [p for p in trimmed.replace("\\", "/").split("/") if p]
        if len(parts) < 3 or parts[0] != "wsl$":
            logger.warning(
                f"Incomplete WSL UNC path: {path}, falling back to standard resolution"
            )
            return _resolve(trimmed.replace("\\", "/"), platform)

        trimmed = "/" + "/".join(parts[2:])
        logger.debug(f"Converted WSL UNC path: {path} -> {trimmed}")

    if trimmed.startswith("/"):
        # a UNC path can point into /mnt/<drive> as well
        windows_path = _from_mnt_drive(trimmed) if platform == "win32" else None
        if windows_path:
            logger.info(f"Converted WSL mount path to Windows: {trimmed} -> {windows_path}")
            return windows_path

        return _strip_trailing_slash(trimmed.replace("\\", "/"), keep=1)

    return _strip_trailing_slash(_resolve(trimmed, platform), keep=3)
