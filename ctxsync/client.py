"""
HTTP client for the remote content store and retrieval service.

The client is created by the caller and passed into the index manager; it
holds the base URL, token and timeouts for its whole lifetime.
"""

import logging
import time
from typing import Any, Callable, Iterable, Optional, TypeVar
import httpx

from .exceptions import MalformedResponseError
from .models import Blob

logger = logging.getLogger(__name__)

T = TypeVar("T")

UPLOAD_PATH = "/batch-upload"
RETRIEVAL_PATH = "/agents/codebase-retrieval"


def normalize_base_url(base_url: str) -> str:
    """Add an https:// scheme if missing and drop trailing slashes."""
    base_url = base_url.strip()
    if not base_url.startswith(("http://", "https://")):
        base_url = f"https://{base_url}"
        logger.debug(f"Added https:// scheme to base_url: {base_url}")
    return base_url.rstrip("/")


def is_retryable(error: BaseException) -> bool:
    """
    Check whether a request failure is worth retrying.

    Connection failures (refused, unreachable host, DNS), timeouts and HTTP
    5xx responses are retryable. Everything else is not.
    """
    if isinstance(error, (httpx.ConnectError, httpx.TimeoutException)):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code >= 500
    return False


def retry_request(
    fn: Callable[[], T],
    max_retries: int = 3,
    retry_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call `fn` with exponential backoff on retryable failures.

    Args:
        fn: Zero-argument callable performing one request
        max_retries: Maximum number of attempts
        retry_delay: Base delay in seconds; attempt n waits retry_delay * 2**n
        sleep: Sleep function (injectable for tests)

    Returns:
        The value returned by `fn`

    Raises:
        The last exception raised by `fn` if it is not retryable or attempts
        run out
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be positive, got {max_retries}")

    for attempt in range(max_retries):
        try:
            return fn()
        except Exception as e:
            if not is_retryable(e) or attempt == max_retries - 1:
                logger.error(f"Request failed after {attempt + 1} attempt(s): {e}")
                raise

            wait = retry_delay * (2 ** attempt)
            logger.warning(
                f"Request failed (attempt {attempt + 1}/{max_retries}): {e}. "
                f"Retrying in {wait:.1f}s..."
            )
            sleep(wait)

    raise AssertionError("unreachable")


class RemoteClient:
    """
    Client for the batch upload and codebase retrieval endpoints.

    Both requests carry a bearer token. Uploads use a shorter timeout than
    retrieval queries.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        upload_timeout: float = 30.0,
        query_timeout: float = 60.0,
        custom_headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Base URL of the remote service (scheme optional)
            token: Bearer token
            upload_timeout: Per-request timeout for uploads, in seconds
            query_timeout: Per-request timeout for retrieval queries, in seconds
            custom_headers: Extra headers sent with every request
            transport: Optional httpx transport (used for testing)
        """
        self.base_url = normalize_base_url(base_url)
        self.upload_timeout = upload_timeout
        self.query_timeout = query_timeout

        headers = dict(custom_headers or {})
        headers["Authorization"] = f"Bearer {token}"

        self.client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=upload_timeout,
            transport=transport,
        )

        logger.info(f"Remote client initialized: {self.base_url}")

    def _post_json(self, path: str, payload: dict[str, Any], timeout: float) -> dict[str, Any]:
        response = self.client.post(path, json=payload, timeout=timeout)
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"{path} returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise MalformedResponseError(f"{path} returned {type(data).__name__}, expected an object")
        return data

    def batch_upload(self, blobs: Iterable[Blob]) -> list[str]:
        """
        Upload one batch of blobs.

        Args:
            blobs: Blobs to upload

        Returns:
            Blob names reported by the remote store

        Raises:
            httpx.HTTPError: On transport failures or non-2xx responses
            MalformedResponseError: If the response has no blob_names list
        """
        payload = {"blobs": [blob.model_dump() for blob in blobs]}
        data = self._post_json(UPLOAD_PATH, payload, timeout=self.upload_timeout)

        names = data.get("blob_names", [])
        if not isinstance(names, list):
            raise MalformedResponseError("blob_names is not a list")
        return [str(name) for name in names]

    def codebase_retrieval(self, query: str, blob_names: Iterable[str]) -> str:
        """
        Ask the retrieval service for context relevant to a query.

        Args:
            query: Natural language information request
            blob_names: All blob names recorded for the project

        Returns:
            Formatted retrieval text, or "" if the service returned nothing

        Raises:
            httpx.HTTPError: On transport failures or non-2xx responses
            MalformedResponseError: If the response is not a JSON object
        """
        payload = {
            "information_request": query,
            "blobs": {
                "checkpoint_id": None,
                "added_blobs": list(blob_names),
                "deleted_blobs": [],
            },
            "dialog": [],
            "max_output_length": 0,
            "disable_codebase_retrieval": False,
            "enable_commit_retrieval": False,
        }
        data = self._post_json(RETRIEVAL_PATH, payload, timeout=self.query_timeout)
        return data.get("formatted_retrieval") or ""

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self.client.close()

    def __enter__(self) -> "RemoteClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        """String representation."""
        return f"RemoteClient(base_url={self.base_url})"
