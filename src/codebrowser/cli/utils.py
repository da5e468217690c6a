"""CLI utilities."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click
from rich.console import Console

from codebrowser.core.errors import CodeBrowserError
from codebrowser.registry import RepoRegistry

_console = Console()


def get_console() -> Console:
    """Get the shared Rich console instance."""
    return _console


@contextmanager
def open_registry(data_dir: Path) -> Iterator[RepoRegistry]:
    """Open the registry for one command, reporting domain errors as CLI errors."""
    try:
        registry = RepoRegistry(data_dir)
    except CodeBrowserError as e:
        raise click.ClickException(e.message) from e
    try:
        yield registry
    except CodeBrowserError as e:
        raise click.ClickException(e.message) from e
    finally:
        registry.close()
