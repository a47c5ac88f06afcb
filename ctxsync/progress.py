"""
Progress reporting system for ctxsync.

Provides progress tracking with ETA calculation for the collection and
upload stages of an indexing run.
"""

import time
from dataclasses import dataclass
from typing import Optional, Callable


@dataclass
class ProgressEvent:
    """
    Event emitted during indexing progress.

    Attributes:
        stage: "collect" while reading files, "upload" while sending batches
        current: Number of items processed so far
        total: Total number of items in this stage
        label: Current file path or batch label
        elapsed_seconds: Time elapsed since the stage started
        eta_seconds: Estimated time remaining (None if unknown)
        rate: Items processed per second
    """
    stage: str
    current: int
    total: int
    label: str
    elapsed_seconds: float
    eta_seconds: Optional[float] = None
    rate: float = 0.0


ProgressCallback = Callable[[ProgressEvent], None]


class ProgressReporter:
    """
    Tracks and reports progress of one stage with ETA calculation.
    """

    def __init__(self, total: int, stage: str, callback: Optional[ProgressCallback] = None):
        """
        Initialize progress reporter.

        Args:
            total: Total number of items in the stage
            stage: Stage name carried on every event
            callback: Optional callback function to receive ProgressEvents
        """
        self.total = total
        self.stage = stage
        self.current = 0
        self.start_time = time.time()
        self.callback = callback

    def update(self, label: str) -> ProgressEvent:
        """
        Record one more processed item.

        Args:
            label: File path or batch label that just finished

        Returns:
            ProgressEvent with current statistics
        """
        self.current += 1
        elapsed = time.time() - self.start_time

        rate = self.current / elapsed if elapsed > 0 else 0

        remaining = self.total - self.current
        eta = remaining / rate if rate > 0 else None

        event = ProgressEvent(
            stage=self.stage,
            current=self.current,
            total=self.total,
            label=label,
            elapsed_seconds=elapsed,
            eta_seconds=eta,
            rate=rate,
        )

        if self.callback:
            self.callback(event)

        return event

    @staticmethod
    def format_eta(seconds: Optional[float]) -> str:
        """
        Format ETA in human-readable form.

        Args:
            seconds: Number of seconds (None if unknown)

        Returns:
            Formatted string like "2m 30s", "1h 15m", or "unknown"
        """
        if seconds is None:
            return "unknown"

        total_secs = int(seconds)
        minutes, secs = divmod(total_secs, 60)
        hours, minutes = divmod(minutes, 60)

        if hours > 0:
            return f"{hours}h {minutes}m"
        elif minutes > 0:
            return f"{minutes}m {secs}s"
        else:
            return f"{secs}s"

    @staticmethod
    def format_duration(seconds: float) -> str:
        """
        Format duration in human-readable form.

        Args:
            seconds: Number of seconds

        Returns:
            Formatted string like "2.5s", "1m 30s", "1h 15m"
        """
        if seconds < 60:
            return f"{seconds:.1f}s"

        total_secs = int(seconds)
        minutes, secs = divmod(total_secs, 60)
        hours, minutes = divmod(minutes, 60)

        if hours > 0:
            return f"{hours}h {minutes}m"
        return f"{minutes}m {secs}s"

    def get_summary(self) -> str:
        """Get a summary of current progress."""
        elapsed = time.time() - self.start_time
        rate = self.current / elapsed if elapsed > 0 else 0

        return (
            f"{self.stage}: {self.current}/{self.total} "
            f"in {self.format_duration(elapsed)} ({rate:.1f}/sec)"
        )
