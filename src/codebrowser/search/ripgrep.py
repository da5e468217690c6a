"""Ripgrep search engine.

Runs ``rg`` as a child process in the repository's source tree and
parses its ``--json`` event stream line by line. Exit code 1 means "no
matches"; any other non-zero exit is an error. The child is killed and
reaped if the calling task is cancelled.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from pathlib import Path

import structlog

from codebrowser.config.constants import RIPGREP_MAX_COUNT_DEFAULT
from codebrowser.core.errors import SearchError
from codebrowser.registry.models import RepoRef
from codebrowser.search.models import EngineKind, Fragment, SearchResult

logger = structlog.get_logger()

# rg --json lines embed whole source lines; minified files exceed the 64 KiB default
_STREAM_LIMIT = 16 * 1024 * 1024

EXIT_NO_MATCHES = 1


def escape_glob(pattern: str) -> str:
    """Escape glob metacharacters (*, ?, [) in user input."""
    out: list[str] = []
    for ch in pattern:
        if ch in "*?[":
            out.append("\\")
        out.append(ch)
    return "".join(out)


def _clean_path(path: str) -> str:
    path = path.replace("\\", "/")
    return path[2:] if path.startswith("./") else path


def parse_match_event(raw: bytes | str) -> SearchResult | None:
    """Convert one rg --json line into a result. Non-match events return None."""
    try:
        event = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("rg_json_parse_failed", line=raw[:200])
        return None

    if event.get("type") != "match":
        return None

    data = event.get("data") or {}
    path = (data.get("path") or {}).get("text")
    if path is None:
        # Non-UTF-8 paths arrive base64-encoded under "bytes"; they cannot be browsed
        return None

    fragments = tuple(
        Fragment(offset=sub["start"], length=sub["end"] - sub["start"])
        for sub in data.get("submatches") or []
        if "start" in sub and "end" in sub
    )
    return SearchResult(
        path=_clean_path(path),
        line_num=int(data.get("line_number") or 0),
        line_text=((data.get("lines") or {}).get("text") or "").rstrip("\r\n"),
        fragments=fragments,
    )


class RipgrepEngine:
    """Line-oriented regex search via ripgrep."""

    name = "ripgrep"
    kind = EngineKind.REGEX

    def __init__(self, binary: str = "rg", *, max_count: int = RIPGREP_MAX_COUNT_DEFAULT) -> None:
        self.binary = binary
        self._max_count = max_count

    async def search_content(self, repo: RepoRef, query: str) -> list[SearchResult]:
        cmd = [self.binary, "--json", "-i", "-m", str(self._max_count), "--", query, "."]
        proc = await self._spawn(cmd, repo.source_path)
        assert proc.stdout is not None and proc.stderr is not None

        results: list[SearchResult] = []
        stderr_task = asyncio.create_task(proc.stderr.read())
        try:
            async for raw in proc.stdout:
                result = parse_match_event(raw)
                if result is not None:
                    results.append(result)
            stderr = await stderr_task
            returncode = await proc.wait()
        except ValueError as e:
            raise SearchError.failed(self.name, f"unreadable rg output: {e}") from e
        finally:
            await self._reap(proc)
            if not stderr_task.done():
                stderr_task.cancel()

        if returncode not in (0, EXIT_NO_MATCHES):
            raise SearchError.failed(
                self.name,
                f"rg exited with {returncode}: {stderr.decode(errors='replace').strip()}",
            )
        logger.debug("rg_search", repo_id=repo.repo_id, query=query, results=len(results))
        return results

    async def search_files(self, repo: RepoRef, query: str) -> list[str]:
        if not query:
            return []
        cmd = [self.binary, "--files", "--iglob", f"*{escape_glob(query)}*"]
        proc = await self._spawn(cmd, repo.source_path)
        try:
            stdout, stderr = await proc.communicate()
        finally:
            await self._reap(proc)

        if proc.returncode == EXIT_NO_MATCHES:
            return []
        if proc.returncode != 0:
            raise SearchError.failed(
                self.name,
                f"rg --files exited with {proc.returncode}: "
                f"{stderr.decode(errors='replace').strip()}",
            )
        return [_clean_path(line) for line in stdout.decode(errors="replace").splitlines() if line]

    async def _spawn(self, cmd: list[str], cwd: Path) -> asyncio.subprocess.Process:
        try:
            return await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                stdin=asyncio.subprocess.DEVNULL,
                cwd=cwd,
                limit=_STREAM_LIMIT,
            )
        except OSError as e:
            raise SearchError.failed(self.name, f"cannot start {cmd[0]}: {e}") from e

    async def _reap(self, proc: asyncio.subprocess.Process) -> None:
        """Kill the child if it is still running, then wait for it."""
        if proc.returncode is not None:
            return
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()

    async def aclose(self) -> None:
        """Nothing to release; each query owns its child process."""
