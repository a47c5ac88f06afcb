"""
Exception types for ctxsync.
"""


class CtxSyncError(Exception):
    """Base class for all ctxsync errors."""


class InvalidPathError(CtxSyncError, ValueError):
    """Raised when a project path is missing or empty."""


class UnreadableFileError(CtxSyncError):
    """Raised when a file cannot be decoded as text."""


class StateStoreError(CtxSyncError):
    """Raised when the project record file cannot be written."""


class MalformedResponseError(CtxSyncError):
    """Raised when the remote service returns a body we cannot interpret."""
