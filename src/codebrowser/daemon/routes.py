"""HTTP routes for the code browser.

Intelligence:
    POST /api/intelligence/definitions
    POST /api/intelligence/references
    POST /api/intelligence/invalidate

Browsing:
    GET /api/repositories
    GET /api/repositories/{repo_id}/tree?path=
    GET /api/repositories/{repo_id}/blob?path=
    GET /api/repositories/{repo_id}/search?q=&engine=
    GET /api/repositories/{repo_id}/search-files?q=&engine=

Errors are returned as a plain-text message with the error's HTTP status.
"""

from __future__ import annotations

import asyncio
import functools
import importlib.metadata
import json
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from codebrowser.config.constants import COLUMN_BASE, LINE_BASE
from codebrowser.core.errors import CodeBrowserError, InternalError, RequestError
from codebrowser.intelligence.models import DefinitionRequest, LookupKind
from codebrowser.registry.models import RepoRef

if TYPE_CHECKING:
    from codebrowser.daemon.lifecycle import ServerController

logger = structlog.get_logger()

Endpoint = Callable[[Request], Awaitable[Response]]

COORDINATE_HEADERS = {"X-Line-Base": str(LINE_BASE), "X-Column-Base": str(COLUMN_BASE)}


def _get_version() -> str:
    """Get package version from installed metadata."""
    try:
        return importlib.metadata.version("codebrowser")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _error_response(error: CodeBrowserError) -> PlainTextResponse:
    return PlainTextResponse(error.message, status_code=error.http_status)


def _handle_errors(endpoint: Endpoint) -> Endpoint:
    """Translate domain errors, and anything unexpected, into plain-text responses."""

    @functools.wraps(endpoint)
    async def wrapper(request: Request) -> Response:
        try:
            return await endpoint(request)
        except CodeBrowserError as e:
            log = logger.warning if e.http_status >= 500 else logger.debug
            log("request_failed", path=request.url.path, **e.to_dict())
            return _error_response(e)
        except Exception as e:
            logger.exception("request_crashed", path=request.url.path)
            return _error_response(InternalError.unexpected(type(e).__name__))

    return wrapper


async def _read_json(request: Request) -> dict[str, Any]:
    body = await request.body()
    if not body.strip():
        return {}
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise RequestError.bad_request(f"Invalid JSON body: {e}") from e
    if not isinstance(payload, dict):
        raise RequestError.bad_request("Request body must be a JSON object")
    return payload


def _parse_lookup(payload: dict[str, Any]) -> DefinitionRequest:
    try:
        return DefinitionRequest.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(p) for p in err["loc"]) or "body" for err in e.errors()
        )
        raise RequestError.bad_request(f"Invalid or missing fields: {fields}") from e


def create_routes(controller: ServerController) -> list[Route]:
    """Create HTTP routes bound to the server controller."""
    start_time = time.time()
    version = _get_version()
    registry = controller.registry
    service = controller.service

    def resolve_repo(request: Request) -> RepoRef:
        repo_id = request.path_params["repo_id"]
        repo = registry.resolve(repo_id)
        if repo is None:
            raise RequestError.repo_not_found(repo_id)
        return repo

    async def health(request: Request) -> JSONResponse:
        """Liveness probe."""
        _ = request  # unused
        return JSONResponse(
            {
                "status": "healthy",
                "version": version,
                "uptime_seconds": round(time.time() - start_time, 1),
                "repositories": registry.count(),
                "cached_indexes": len(service.store.cached_paths()),
            }
        )

    # -----------------------------------------------------------------
    # Intelligence
    # -----------------------------------------------------------------

    async def _lookup(request: Request, kind: LookupKind) -> JSONResponse:
        lookup = _parse_lookup(await _read_json(request))
        results = await service.lookup(lookup, kind)
        return JSONResponse([r.to_wire() for r in results], headers=COORDINATE_HEADERS)

    @_handle_errors
    async def definitions(request: Request) -> Response:
        return await _lookup(request, LookupKind.DEFINITION)

    @_handle_errors
    async def references(request: Request) -> Response:
        return await _lookup(request, LookupKind.REFERENCE)

    @_handle_errors
    async def invalidate(request: Request) -> Response:
        """Drop cached semantic indexes so updated index files are re-read."""
        payload = await _read_json(request)
        repo_id = payload.get("repoId")
        dropped = service.invalidate(None if repo_id is None else str(repo_id))
        return JSONResponse({"invalidated": dropped})

    # -----------------------------------------------------------------
    # Browsing
    # -----------------------------------------------------------------

    @_handle_errors
    async def list_repositories(request: Request) -> Response:
        _ = request  # unused
        return JSONResponse(
            [{"id": repo.repo_id_str, "name": repo.name} for repo in registry.list_all()]
        )

    @_handle_errors
    async def tree(request: Request) -> Response:
        repo = resolve_repo(request)
        path = request.query_params.get("path", "")
        entries = await asyncio.to_thread(registry.list_tree, repo, path)
        return JSONResponse([entry.to_dict() for entry in entries])

    @_handle_errors
    async def blob(request: Request) -> Response:
        repo = resolve_repo(request)
        path = request.query_params.get("path", "")
        data = await asyncio.to_thread(registry.read_blob, repo, path)
        return Response(data, media_type="application/octet-stream")

    @_handle_errors
    async def search(request: Request) -> Response:
        repo = resolve_repo(request)
        query = request.query_params.get("q", "")
        if not query.strip():
            raise RequestError.bad_request("Query parameter 'q' is required")
        engine = controller.engine(request.query_params.get("engine"))
        results = await engine.search_content(repo, query)
        return JSONResponse([r.to_dict() for r in results])

    @_handle_errors
    async def search_files(request: Request) -> Response:
        repo = resolve_repo(request)
        query = request.query_params.get("q", "")
        engine = controller.engine(request.query_params.get("engine"))
        if not query.strip():
            return JSONResponse([])
        return JSONResponse(await engine.search_files(repo, query))

    return [
        Route("/health", health, methods=["GET"]),
        Route("/api/intelligence/definitions", definitions, methods=["POST"]),
        Route("/api/intelligence/references", references, methods=["POST"]),
        Route("/api/intelligence/invalidate", invalidate, methods=["POST"]),
        Route("/api/repositories", list_repositories, methods=["GET"]),
        Route("/api/repositories/{repo_id}/tree", tree, methods=["GET"]),
        Route("/api/repositories/{repo_id}/blob", blob, methods=["GET"]),
        Route("/api/repositories/{repo_id}/search", search, methods=["GET"]),
        Route("/api/repositories/{repo_id}/search-files", search_files, methods=["GET"]),
    ]
