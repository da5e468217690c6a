"""CodeBrowser CLI - codebrowser command."""

from pathlib import Path

import click

from codebrowser.cli.repo import repo_command
from codebrowser.cli.serve import serve_command
from codebrowser.core.logging import configure_logging


@click.group()
@click.version_option(package_name="codebrowser", prog_name="codebrowser")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path(".data"),
    show_default=True,
    envvar="CODEBROWSER_DATA_DIR",
    help="Directory holding the registry database and per-repository data",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path, verbose: bool) -> None:
    """CodeBrowser - self-hosted code browsing with go-to-definition."""
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir.resolve()
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(serve_command, name="serve")
cli.add_command(repo_command, name="repo")


if __name__ == "__main__":
    cli()
