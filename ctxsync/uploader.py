"""
Batched blob upload for ctxsync.

Batches are sent one at a time, in order. A batch that keeps failing is
recorded and skipped; the remaining batches still run.
"""

import logging
import math
import time
from typing import Callable, Optional, Sequence

from .client import RemoteClient, retry_request
from .models import Blob, UploadResult
from .progress import ProgressCallback, ProgressReporter

logger = logging.getLogger(__name__)


class BatchUploader:
    """
    Uploads blobs in fixed-size batches with per-batch retry.
    """

    def __init__(
        self,
        client: RemoteClient,
        batch_size: int = 10,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """
        Initialize the uploader.

        Args:
            client: Remote client used for every batch
            batch_size: Number of blobs per upload request
            max_retries: Attempts per batch for retryable failures
            retry_delay: Base backoff delay in seconds
            sleep: Sleep function (injectable for tests)
            progress_callback: Optional callback(ProgressEvent) per finished batch
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.client = client
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.sleep = sleep
        self.progress_callback = progress_callback

    def upload(self, blobs: Sequence[Blob]) -> UploadResult:
        """
        Upload blobs batch by batch.

        Args:
            blobs: Blobs not yet recorded for the project

        Returns:
            UploadResult with every returned blob name and the 1-based numbers
            of the batches that failed
        """
        total_batches = math.ceil(len(blobs) / self.batch_size)
        if total_batches == 0:
            return UploadResult()

        logger.info(
            f"Uploading {len(blobs)} new blobs in {total_batches} batches "
            f"(batch_size={self.batch_size})"
        )

        reporter = None
        if self.progress_callback:
            reporter = ProgressReporter(total_batches, stage="upload", callback=self.progress_callback)

        uploaded: dict[str, None] = {}
        failed_batches = []

        for index in range(total_batches):
            batch_number = index + 1
            batch = blobs[index * self.batch_size:(index + 1) * self.batch_size]
            logger.info(f"Uploading batch {batch_number}/{total_batches} ({len(batch)} blobs)")

            try:
                names = retry_request(
                    lambda: self.client.batch_upload(batch),
                    max_retries=self.max_retries,
                    retry_delay=self.retry_delay,
                    sleep=self.sleep,
                )
            except Exception as e:
                logger.error(
                    f"Batch {batch_number} failed after retries: {e}. Continuing with next batch..."
                )
                failed_batches.append(batch_number)
            else:
                if names:
                    uploaded.update(dict.fromkeys(names))
                    logger.info(f"Batch {batch_number} uploaded successfully, got {len(names)} blob names")
                else:
                    logger.warning(f"Batch {batch_number} returned no blob names")
                    failed_batches.append(batch_number)

            if reporter:
                reporter.update(f"batch {batch_number}/{total_batches}")

        return UploadResult(
            blob_names=list(uploaded),
            failed_batches=failed_batches,
            total_batches=total_batches,
        )
