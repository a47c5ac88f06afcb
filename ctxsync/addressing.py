"""
Content addressing for ctxsync blobs.

A blob's name is the SHA-256 of its logical path followed by its content.
The same name is the remote storage key and the local "already uploaded"
marker.
"""

import hashlib
from typing import Iterable

from .models import Blob


def compute_blob_name(path: str, content: str) -> str:
    """
    Compute the content-addressed name of a blob.

    Args:
        path: Logical path of the blob
        content: Blob text

    Returns:
        64-character lowercase hex digest
    """
    sha256 = hashlib.sha256()
    sha256.update(path.encode("utf-8", errors="surrogatepass"))
    sha256.update(content.encode("utf-8", errors="surrogatepass"))
    return sha256.hexdigest()


def blob_names(blobs: Iterable[Blob]) -> dict[str, Blob]:
    """Map blob names to blobs, keeping the first blob for a repeated name."""
    named: dict[str, Blob] = {}
    for blob in blobs:
        named.setdefault(compute_blob_name(blob.path, blob.content), blob)
    return named
