"""
Pytest fixtures for ctxsync tests.

Provides temporary directories, sample projects, and an in-memory remote
service served through httpx.MockTransport.
"""

import json
import pytest
import tempfile
import shutil
from pathlib import Path
import httpx

from ctxsync.addressing import compute_blob_name
from ctxsync.client import RemoteClient
from ctxsync.config import Config
from ctxsync.indexer import IndexManager


def no_sleep(seconds):
    """Sleep replacement that returns immediately."""


class FakeRemote:
    """
    In-memory stand-in for the remote store and retrieval service.

    Upload requests containing a path listed in `fail_paths` are answered
    with HTTP 500. The next `transient_failures` upload requests are
    answered with HTTP 503.
    """

    def __init__(self):
        self.upload_attempts = 0
        self.uploads: list[list[dict]] = []
        self.queries: list[dict] = []
        self.headers: list[httpx.Headers] = []
        self.stored: dict[str, dict] = {}
        self.fail_paths: set[str] = set()
        self.transient_failures = 0
        self.empty_names = False
        self.retrieval_status = 200
        self.retrieval_text = "Path: a.txt\n    line 1"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.headers.append(request.headers)
        body = json.loads(request.content)

        if request.url.path == "/batch-upload":
            return self._upload(body["blobs"])
        if request.url.path == "/agents/codebase-retrieval":
            self.queries.append(body)
            if self.retrieval_status != 200:
                return httpx.Response(self.retrieval_status, json={"error": "unavailable"})
            return httpx.Response(200, json={"formatted_retrieval": self.retrieval_text})
        return httpx.Response(404)

    def _upload(self, blobs: list[dict]) -> httpx.Response:
        self.upload_attempts += 1
        if self.transient_failures > 0:
            self.transient_failures -= 1
            return httpx.Response(503, json={"error": "try again"})
        if any(blob["path"] in self.fail_paths for blob in blobs):
            return httpx.Response(500, json={"error": "storage failure"})

        self.uploads.append(blobs)
        names = []
        for blob in blobs:
            name = compute_blob_name(blob["path"], blob["content"])
            self.stored[name] = blob
            names.append(name)

        if self.empty_names:
            names = []
        return httpx.Response(200, json={"blob_names": names})

    @property
    def uploaded_paths(self) -> list[str]:
        return [blob["path"] for batch in self.uploads for blob in batch]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    # Cleanup
    if temp_path.exists():
        shutil.rmtree(temp_path)


@pytest.fixture
def project_dir(temp_dir):
    """Create an empty project directory."""
    path = temp_dir / "project"
    path.mkdir()
    return path


@pytest.fixture
def sample_project(project_dir):
    """
    Create a project with one short and one long text file.

    a.txt has 50 lines; b.txt has 2000 lines and splits into three blobs at
    the default 800-line limit.
    """
    (project_dir / "a.txt").write_text("".join(f"alpha {i}\n" for i in range(50)))
    (project_dir / "b.txt").write_text("".join(f"beta {i}\n" for i in range(2000)))
    return project_dir


@pytest.fixture
def sample_codebase(project_dir):
    """Create a small codebase with nested, ignored and excluded files."""
    src_dir = project_dir / "src"
    src_dir.mkdir()
    (src_dir / "main.py").write_text('''
from utils import utility_function

def main():
    """Main entry point."""
    print(utility_function())
''')
    (src_dir / "utils.py").write_text('''
def utility_function():
    """A utility function."""
    return "utility"
''')
    (project_dir / "README.md").write_text("# Sample\n\nA sample project.\n")
    (project_dir / ".gitignore").write_text("*.log\ngenerated/\n")
    (project_dir / "debug.log").write_text("not indexed\n")

    generated = project_dir / "generated"
    generated.mkdir()
    (generated / "schema.py").write_text("SCHEMA = {}\n")

    node_modules = project_dir / "node_modules" / "lib"
    node_modules.mkdir(parents=True)
    (node_modules / "index.js").write_text("module.exports = {};\n")

    (project_dir / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00")
    return project_dir


@pytest.fixture
def config(temp_dir):
    """Create a test configuration with its home inside temp_dir."""
    return Config(home=temp_dir / "home")


@pytest.fixture
def fake_remote():
    """In-memory remote service."""
    return FakeRemote()


@pytest.fixture
def remote_client(fake_remote):
    """Remote client talking to the in-memory service."""
    client = RemoteClient(
        "remote.test",
        "test-token",
        transport=httpx.MockTransport(fake_remote.handler),
    )
    yield client
    client.close()


@pytest.fixture
def index_manager(config, remote_client):
    """Index manager wired to the in-memory service, without backoff delays."""
    return IndexManager.from_config(config, remote_client, sleep=no_sleep)
