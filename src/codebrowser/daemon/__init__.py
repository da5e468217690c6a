"""Code browser HTTP server."""

from codebrowser.daemon.app import create_app
from codebrowser.daemon.lifecycle import ServerController, run_server

__all__ = [
    "ServerController",
    "create_app",
    "run_server",
]
