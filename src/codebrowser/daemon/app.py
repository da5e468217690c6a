"""Starlette application factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.applications import Starlette

from codebrowser.daemon.middleware import RequestContextMiddleware, TimeoutMiddleware
from codebrowser.daemon.routes import create_routes

if TYPE_CHECKING:
    from codebrowser.daemon.lifecycle import ServerController


def create_app(controller: ServerController) -> Starlette:
    """Create the Starlette application for a controller's components."""
    app = Starlette(routes=create_routes(controller))

    # Added last runs first: request IDs wrap the deadline
    app.add_middleware(
        TimeoutMiddleware, timeout_sec=controller.config.server.request_timeout_sec
    )
    app.add_middleware(RequestContextMiddleware)

    return app
