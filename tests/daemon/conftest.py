"""Fixtures for daemon tests."""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from starlette.testclient import TestClient

from codebrowser.config.models import CodeBrowserConfig
from codebrowser.daemon.app import create_app
from codebrowser.daemon.lifecycle import ServerController
from codebrowser.search.models import EngineKind, SearchResult


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Plain directory checkout with a few files."""
    source = tmp_path / "src"
    (source / "pkg").mkdir(parents=True)
    (source / "a.go").write_text("package a\n\nfunc Hello() {}\n")
    (source / "pkg" / "b.go").write_text("package pkg\n\nfunc use() { Hello() }\n")
    return source


@pytest.fixture
def engines(make_engine: Callable[..., Any]) -> dict[str, Any]:
    hit = SearchResult(path="pkg/b.go", line_num=3, line_text="func use() { Hello() }")
    return {
        "zoekt": make_engine(
            EngineKind.STRUCTURAL, {"sym:Hello": [hit], "Hello": [hit]}, name="zoekt"
        ),
        "ripgrep": make_engine(EngineKind.REGEX, {"Hello": [hit]}, name="ripgrep"),
    }


@pytest.fixture
def controller(
    tmp_path: Path, source_dir: Path, engines: dict[str, Any]
) -> Generator[ServerController, None, None]:
    ctrl = ServerController(
        data_dir=tmp_path / "data", config=CodeBrowserConfig(), engines=engines
    )
    ctrl.registry.add(1, "demo", source_dir)
    yield ctrl
    ctrl.registry.close()


@pytest.fixture
def client(controller: ServerController) -> TestClient:
    return TestClient(create_app(controller))
