"""Server lifecycle management."""

from __future__ import annotations

import asyncio
import signal
from dataclasses import dataclass, field
from pathlib import Path

import structlog
import uvicorn

from codebrowser.config.models import CodeBrowserConfig
from codebrowser.core.errors import ConfigError, RequestError
from codebrowser.intelligence import FallbackResolver, IntelligenceService, SemanticIndexStore
from codebrowser.registry import RepoRegistry
from codebrowser.search import SearchEngine, create_engines

logger = structlog.get_logger()


@dataclass
class ServerController:
    """
    Owns the long-lived components shared by every request.

    Components:
    - RepoRegistry: repository identity, blobs and trees
    - SemanticIndexStore: parsed SCIP indexes
    - Search engines keyed by name; the default one backs the fallback
    - IntelligenceService: definition and reference lookups
    """

    data_dir: Path
    config: CodeBrowserConfig = field(default_factory=CodeBrowserConfig)
    engines: dict[str, SearchEngine] = field(default_factory=dict)
    store: SemanticIndexStore = field(default_factory=SemanticIndexStore)

    registry: RepoRegistry = field(init=False)
    service: IntelligenceService = field(init=False)

    def __post_init__(self) -> None:
        self.registry = RepoRegistry(
            self.data_dir, blob_cache_size=self.config.cache.blob_max_entries
        )
        if not self.engines:
            self.engines = create_engines(self.config.search)
        if self.default_engine not in self.engines:
            raise ConfigError.invalid_value(
                "search.default_engine",
                self.default_engine,
                f"engine is not configured (available: {', '.join(sorted(self.engines))})",
            )
        self.service = IntelligenceService(
            self.registry,
            self.store,
            FallbackResolver(self.engines[self.default_engine]),
            fallback_limit=self.config.intelligence.fallback_limit,
        )

    @property
    def default_engine(self) -> str:
        return self.config.search.default_engine

    def engine(self, name: str | None = None) -> SearchEngine:
        """Look up a search engine by name; None selects the default."""
        engine = self.engines.get(name or self.default_engine)
        if engine is None:
            raise RequestError.bad_request(
                f"Unknown search engine '{name}' (available: {', '.join(sorted(self.engines))})"
            )
        return engine

    async def start(self) -> None:
        base_url = f"http://{self.config.server.host}:{self.config.server.port}"
        logger.info(
            "server started",
            data_dir=str(self.data_dir),
            repositories=self.registry.count(),
            default_engine=self.default_engine,
        )
        logger.info("endpoint", name="health", url=f"{base_url}/health")
        logger.info("endpoint", name="api", url=f"{base_url}/api")

    async def stop(self) -> None:
        """Release engines and the registry database."""
        logger.info("server stopping")
        try:
            async with asyncio.timeout(self.config.server.shutdown_timeout_sec):
                for engine in self.engines.values():
                    await engine.aclose()
        except TimeoutError:
            logger.warning(
                "server_stop_timeout",
                message=f"Shutdown timed out after {self.config.server.shutdown_timeout_sec}s",
            )
        self.registry.close()
        logger.info("server stopped")


async def run_server(data_dir: Path, config: CodeBrowserConfig) -> None:
    """Run the HTTP server until a shutdown signal arrives."""
    from codebrowser.daemon.app import create_app

    controller = ServerController(data_dir=data_dir, config=config)
    app = create_app(controller)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level="warning",  # Use structlog instead
        ws="none",
    )
    server = uvicorn.Server(uvicorn_config)

    # Second signal forces exit
    loop = asyncio.get_running_loop()
    shutdown_count = 0

    def signal_handler() -> None:
        nonlocal shutdown_count
        shutdown_count += 1
        logger.info("shutdown_signal_received", count=shutdown_count)
        server.should_exit = True
        if shutdown_count > 1:
            server.force_exit = True

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await controller.start()
        await server.serve()
    finally:
        await controller.stop()
