"""
MCP server for ctxsync.

Exposes codebase retrieval to MCP clients via the Model Context Protocol.
Every tool call builds its own remote client and index manager; calls for
the same project are serialized because the project record is unlocked.
"""

import argparse
import logging
import threading
from pathlib import Path
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .client import RemoteClient
from .config import Config
from .exceptions import InvalidPathError
from .indexer import IndexManager
from .logging_config import setup_logging_from_config
from .paths import normalize_project_path

logger = logging.getLogger(__name__)

# Initialized in initialize()
config: Optional[Config] = None

# One lock per project path served; entries are kept for the life of the
# process, bounded by the number of distinct projects a client asks about.
_project_locks: dict[str, threading.Lock] = {}
_project_locks_guard = threading.Lock()

mcp = FastMCP("ctxsync")

TOOL_DESCRIPTION = (
    "Search for relevant code context based on a query within a specific project. "
    "This tool automatically performs incremental indexing before searching, ensuring "
    "results are always up-to-date. Returns formatted text snippets from the codebase "
    "that are semantically related to your query."
)


def project_lock(project_path: str) -> threading.Lock:
    """Get the lock serializing runs for one normalized project path."""
    with _project_locks_guard:
        lock = _project_locks.get(project_path)
        if lock is None:
            lock = _project_locks[project_path] = threading.Lock()
        return lock


def make_client() -> RemoteClient:
    """Create a remote client from the loaded configuration."""
    remote = config.remote
    return RemoteClient(
        base_url=remote.get("base_url", ""),
        token=remote.get("token", ""),
        upload_timeout=remote.get("upload_timeout", 30.0),
        query_timeout=remote.get("query_timeout", 60.0),
        custom_headers=remote.get("custom_headers") or {},
    )


@mcp.tool(name="codebase-retrieval", description=TOOL_DESCRIPTION)
def codebase_retrieval(project_root_path: str, query: str) -> str:
    """
    Retrieve code context for a query, indexing the project first.

    Args:
        project_root_path: Absolute path to the project root. Windows
            (C:/Users/...), WSL UNC (\\\\wsl$\\Ubuntu\\home\\...), Unix
            (/home/...) and WSL mount (/mnt/c/...) forms are accepted.
        query: Natural language description of the code you are looking for

    Returns:
        Formatted code context, or a message starting with "Error:"
    """
    if config is None:
        return "Error: Server not initialized"

    if not project_root_path:
        return "Error: project_root_path is required"
    if not query:
        return "Error: query is required"

    try:
        project_path = normalize_project_path(project_root_path)
    except InvalidPathError as e:
        return f"Error: Invalid project path - {e}"

    try:
        with project_lock(project_path):
            with make_client() as client:
                manager = IndexManager.from_config(config, client)
                return manager.codebase_retrieval(project_path, query)
    except Exception as e:
        logger.error(f"Error in codebase-retrieval tool: {e}", exc_info=True)
        return f"Error: {e}"


def initialize(
    config_path: Optional[Path] = None,
    base_url: Optional[str] = None,
    token: Optional[str] = None,
) -> Config:
    """
    Load configuration for the server.

    Args:
        config_path: Settings file (defaults to ~/.ctxsync/settings.toml)
        base_url: Override for remote.base_url
        token: Override for remote.token

    Returns:
        The loaded Config
    """
    global config

    config = Config(config_path=config_path)
    if base_url:
        config.set("remote", "base_url", value=base_url)
    if token:
        config.set("remote", "token", value=token)

    logger.info(f"Initialized ctxsync MCP server (remote: {config.get('remote', 'base_url')})")
    return config


def main():
    """Entry point for the MCP server."""
    parser = argparse.ArgumentParser(
        description="ctxsync MCP server for codebase retrieval"
    )
    parser.add_argument("--base-url", help="Remote service base URL (overrides settings)")
    parser.add_argument("--token", help="Remote service bearer token (overrides settings)")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings file (default: ~/.ctxsync/settings.toml)"
    )

    args = parser.parse_args()

    loaded = initialize(args.config, base_url=args.base_url, token=args.token)
    setup_logging_from_config(loaded)

    logger.info("Starting ctxsync MCP server...")
    mcp.run()


if __name__ == "__main__":
    main()
