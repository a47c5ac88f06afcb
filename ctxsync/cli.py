"""
Command-line interface for ctxsync.

Provides commands for initializing configuration, indexing projects,
querying the retrieval service, and managing the project record.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn
from rich.table import Table

from .config import Config
from .client import RemoteClient
from .exceptions import InvalidPathError, StateStoreError
from .indexer import IndexManager
from .logging_config import set_log_level, setup_logging_from_config
from .paths import normalize_project_path
from .progress import ProgressReporter
from .store import ProjectStateStore
from . import __version__

logger = logging.getLogger(__name__)

# Rich console for pretty output
console = Console()

STAGE_DESCRIPTIONS = {
    "collect": "Reading",
    "upload": "Uploading",
}


def _make_client(config: Config, base_url: Optional[str], token: Optional[str]) -> RemoteClient:
    """Create a remote client from config, with command-line overrides."""
    remote = config.remote
    return RemoteClient(
        base_url=base_url or remote.get("base_url", ""),
        token=token or remote.get("token", ""),
        upload_timeout=remote.get("upload_timeout", 30.0),
        query_timeout=remote.get("query_timeout", 60.0),
        custom_headers=remote.get("custom_headers") or {},
    )


remote_options = [
    click.option("--base-url", help="Remote service base URL (overrides settings)"),
    click.option("--token", help="Remote service bearer token (overrides settings)"),
]


def with_remote_options(func):
    for option in reversed(remote_options):
        func = option(func)
    return func


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Settings file (default: ~/.ctxsync/settings.toml)",
)
@click.version_option(version=__version__, prog_name="ctxsync")
@click.pass_context
def main(ctx: click.Context, debug: bool, config_path: Optional[Path]):
    """ctxsync - Incremental project sync for remote codebase retrieval."""
    config = Config(config_path=config_path)
    setup_logging_from_config(config)
    if debug:
        set_log_level("DEBUG")
    ctx.obj = config


@main.command()
@click.option("--force", is_flag=True, help="Overwrite an existing settings file")
@click.pass_obj
def init(config: Config, force: bool):
    """Write a default settings file."""
    if not config.write_default(overwrite=force):
        console.print(f"[yellow]Settings file already exists at {config.config_path}[/yellow]")
        return

    console.print(f"[green]✓[/green] Created config at {config.config_path}")
    console.print("\nNext steps:")
    console.print("  1. Set [cyan]base_url[/cyan] and [cyan]token[/cyan] under [remote]")
    console.print("  2. Run [cyan]ctxsync index <path>[/cyan] to upload your project")


@main.command()
@click.argument("path", default=".")
@with_remote_options
@click.pass_obj
def index(config: Config, path: str, base_url: Optional[str], token: Optional[str]):
    """Incrementally upload a project directory."""
    console.print(f"[cyan]Indexing {path}...[/cyan]")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        TextColumn("[cyan]ETA: {task.fields[eta]}"),
        console=console,
    ) as progress:
        task = progress.add_task("Scanning files...", total=None, eta="calculating...")

        def progress_callback(event):
            """Handle progress events with ETA."""
            stage = STAGE_DESCRIPTIONS.get(event.stage, event.stage)
            progress.update(
                task,
                total=event.total,
                completed=event.current,
                description=f"{stage}: {event.label}",
                eta=ProgressReporter.format_eta(event.eta_seconds),
            )

        with _make_client(config, base_url, token) as client:
            manager = IndexManager.from_config(config, client, progress_callback=progress_callback)
            outcome = manager.index_project(path)

    if outcome.status == "error":
        console.print(f"\n[red]Error during indexing: {outcome.message}[/red]")
        sys.exit(1)

    if outcome.status == "partial_success":
        console.print(f"\n[yellow]! Indexing partially succeeded: {outcome.message}[/yellow]\n")
        console.print("Re-run the command to retry the failed batches.")
    else:
        console.print(f"\n[green]✓ {outcome.message}[/green]\n")

    if outcome.stats:
        console.print(str(outcome.stats))


@main.command()
@click.argument("path")
@click.argument("query")
@with_remote_options
@click.pass_obj
def search(config: Config, path: str, query: str, base_url: Optional[str], token: Optional[str]):
    """Index PATH, then ask the retrieval service about QUERY.

    Examples:
      ctxsync search . "logging configuration setup"
      ctxsync search /mnt/c/work/app "database connection pool"
    """
    with _make_client(config, base_url, token) as client:
        manager = IndexManager.from_config(config, client)
        result = manager.codebase_retrieval(path, query)

    if result.startswith("Error:"):
        console.print(result, style="red", markup=False)
        sys.exit(1)

    console.print(result, markup=False, highlight=False)


@main.command()
@click.pass_obj
def status(config: Config):
    """Show recorded projects and their blob counts."""
    store = ProjectStateStore(config.state_file)
    projects = store.list_projects()

    if not projects:
        console.print("[yellow]No projects recorded yet. Run 'ctxsync index' to create one.[/yellow]")
        return

    table = Table(title="Recorded Projects")
    table.add_column("Project", style="cyan")
    table.add_column("Blobs", style="green", justify="right")

    for project_path, count in projects.items():
        table.add_row(project_path, str(count))

    console.print(table)
    console.print(f"\nState file: {config.state_file}")


@main.command()
@click.argument("path")
@click.confirmation_option(prompt="Are you sure you want to forget all uploaded blobs for this project?")
@click.pass_obj
def clean(config: Config, path: str):
    """Forget the recorded blobs for a project.

    The next index run uploads every blob of the project again.
    """
    try:
        project_path = normalize_project_path(path)
    except InvalidPathError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    store = ProjectStateStore(config.state_file)
    try:
        removed = store.remove_project(project_path)
    except StateStoreError as e:
        console.print(f"[red]Error cleaning project record: {e}[/red]")
        sys.exit(1)

    if removed:
        console.print(f"[green]✓ Cleared recorded blobs for {project_path}.[/green]")
    else:
        console.print(f"[yellow]No record found for {project_path}.[/yellow]")


if __name__ == "__main__":
    main()
