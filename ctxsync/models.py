"""
Data models for ctxsync.

Defines Pydantic models for blobs, upload results and indexing outcomes.
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field


IndexStatus = Literal["success", "partial_success", "error"]


class Blob(BaseModel):
    """
    A unit of uploaded content.

    `path` is the file path relative to the project root, suffixed with
    `#chunk<i>of<n>` when the file was split.
    """
    path: str = Field(description="Logical path relative to project root")
    content: str = Field(description="Decoded text content")


class UploadResult(BaseModel):
    """Result of uploading a list of blobs in batches."""
    blob_names: list[str] = Field(default_factory=list)
    failed_batches: list[int] = Field(
        default_factory=list, description="1-based numbers of batches that failed"
    )
    total_batches: int = 0

    @property
    def successful_batches(self) -> int:
        return self.total_batches - len(self.failed_batches)


class CollectionResult(BaseModel):
    """Blobs gathered from one traversal of a project directory."""
    blobs: list[Blob] = Field(default_factory=list)
    files_read: int = 0
    files_skipped: int = 0
    excluded: int = 0


class IndexStats(BaseModel):
    """Counters for one indexing run."""
    total_blobs: int = 0
    existing_blobs: int = 0
    new_blobs: int = 0
    skipped_blobs: int = 0
    skipped_files: int = 0

    def __str__(self) -> str:
        """Format stats for display."""
        lines = [
            f"Total blobs: {self.total_blobs}",
            f"Existing blobs: {self.existing_blobs}",
            f"New blobs: {self.new_blobs}",
        ]
        if self.skipped_files:
            lines.append(f"Unreadable files skipped: {self.skipped_files}")
        return "\n".join(lines)


class IndexOutcome(BaseModel):
    """The result of one `IndexManager.index_project` call."""
    status: IndexStatus
    message: str
    project_path: Optional[str] = None
    failed_batches: list[int] = Field(default_factory=list)
    stats: Optional[IndexStats] = None

    @property
    def ok(self) -> bool:
        return self.status != "error"
