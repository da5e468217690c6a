"""codebrowser serve command - run the HTTP server in the foreground."""

import asyncio
from importlib.metadata import PackageNotFoundError, version

import click

from codebrowser.cli.utils import get_console
from codebrowser.config.loader import load_config
from codebrowser.core.errors import CodeBrowserError
from codebrowser.core.logging import configure_logging


def _print_banner(host: str, port: int, data_dir: str) -> None:
    try:
        ver = version("codebrowser")
    except PackageNotFoundError:
        ver = "dev"
    console = get_console()
    base_url = f"http://{host}:{port}"

    console.rule(f"CodeBrowser v{ver}", style="cyan")
    console.print(f"  API:             {base_url}/api", style="green", highlight=False)
    console.print(f"  Health Check:    {base_url}/health", highlight=False)
    console.print(f"  Data directory:  {data_dir}", style="dim", highlight=False)
    console.print()


@click.command()
@click.option("--host", help="Override bind address")
@click.option("--port", "-p", type=int, help="Override server port")
@click.pass_context
def serve_command(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Start the code browser API server."""
    from codebrowser.daemon.lifecycle import run_server

    data_dir = ctx.obj["data_dir"]
    overrides: dict[str, object] = {}
    if host is not None:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port

    try:
        config = load_config(data_dir, **({"server": overrides} if overrides else {}))
    except CodeBrowserError as e:
        raise click.ClickException(e.message) from e

    if ctx.obj.get("verbose"):
        config.logging.level = "DEBUG"
    configure_logging(config=config.logging)

    _print_banner(config.server.host, config.server.port, str(data_dir))
    try:
        asyncio.run(run_server(data_dir, config))
    except CodeBrowserError as e:
        raise click.ClickException(e.message) from e
