"""codebrowser repo commands - manage registered repositories."""

from pathlib import Path

import click
from rich.table import Table

from codebrowser.cli.utils import get_console, open_registry


@click.group()
def repo_command() -> None:
    """Register, list and remove repositories."""


@repo_command.command("add")
@click.argument("repo_id", type=click.IntRange(min=1, max=2**32 - 1))
@click.argument("name")
@click.argument(
    "source_path", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.pass_context
def add_command(ctx: click.Context, repo_id: int, name: str, source_path: Path) -> None:
    """Register the checkout at SOURCE_PATH as repository REPO_ID."""
    with open_registry(ctx.obj["data_dir"]) as registry:
        repo = registry.add(repo_id, name, source_path)
    get_console().print(
        f"Added repository [bold]{repo.name}[/bold] ({repo.repo_id}) -> {repo.source_path}",
        highlight=False,
    )


@repo_command.command("list")
@click.pass_context
def list_command(ctx: click.Context) -> None:
    """List registered repositories."""
    console = get_console()
    with open_registry(ctx.obj["data_dir"]) as registry:
        repos = registry.list_all()
        indexed = {r.repo_id: registry.index_path_of(r).is_file() for r in repos}

    if not repos:
        console.print("No repositories registered.")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Source")
    table.add_column("SCIP", justify="center")
    for repo in repos:
        table.add_row(
            repo.repo_id_str,
            repo.name,
            str(repo.source_path),
            "yes" if indexed[repo.repo_id] else "-",
        )
    console.print(table)


@repo_command.command("delete")
@click.argument("repo_id", type=int)
@click.pass_context
def delete_command(ctx: click.Context, repo_id: int) -> None:
    """Unregister REPO_ID and remove its data directory."""
    with open_registry(ctx.obj["data_dir"]) as registry:
        registry.delete(repo_id)
    get_console().print(f"Deleted repository {repo_id}", highlight=False)


@repo_command.command("register-scip")
@click.argument("repo_id", type=int)
@click.argument(
    "scip_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.pass_context
def register_scip_command(ctx: click.Context, repo_id: int, scip_file: Path) -> None:
    """Install SCIP_FILE as the semantic index of REPO_ID.

    A running server keeps the previous index cached until
    POST /api/intelligence/invalidate is called.
    """
    with open_registry(ctx.obj["data_dir"]) as registry:
        target = registry.register_scip(repo_id, scip_file)
    get_console().print(f"Installed index at {target}", highlight=False)
