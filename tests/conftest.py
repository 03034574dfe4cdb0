"""Pytest configuration for srccli tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`), and provides a
fake ``requests.Session`` so no test ever reaches the network.
"""

from __future__ import annotations

import io
import json
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

_TEST_START_TIMES: dict[str, float] = {}
_TEST_DURATIONS: list[tuple[str, float]] = []

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@dataclass
class DummyResponse:
    status_code: int
    payload: Any

    def json(self) -> Any:
        if isinstance(self.payload, str):
            return json.loads(self.payload)
        return self.payload

    @property
    def text(self) -> str:
        payload = self.payload
        if payload is None:
            return ""
        if isinstance(payload, (dict, list)):
            return json.dumps(payload)
        return str(payload)


class DummySession:
    def __init__(self, responses: list[DummyResponse]):
        self._responses = responses
        self.request_log: list[tuple[str, str, dict[str, Any]]] = []
        self.headers: dict[str, str] = {}

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        json: Any | None = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> DummyResponse:
        self.request_log.append(
            (method, url, {"headers": dict(headers), "json": json, "params": params, "timeout": timeout})
        )
        if not self._responses:
            raise AssertionError("No response queued for request")
        return self._responses.pop(0)


@pytest.fixture
def make_session() -> Callable[..., DummySession]:
    """``make_session((200, {...}), (404, "nope"))`` -> DummySession."""

    def _make(*responses: tuple[int, Any]) -> DummySession:
        return DummySession([DummyResponse(status, payload) for status, payload in responses])

    return _make


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Empty environment with a throwaway config home and working directory."""
    monkeypatch.chdir(tmp_path)
    return {"XDG_CONFIG_HOME": str(tmp_path / "config"), "NO_COLOR": "1"}


@dataclass
class CliResult:
    code: int
    out: str
    err: str


@pytest.fixture
def run_cli(isolated_env: dict[str, str]) -> Callable[..., CliResult]:
    """Invoke ``srccli.cli.main`` with captured streams and an isolated environment."""
    from srccli.cli import main

    def _run(
        *argv: str, session: DummySession | None = None, env: dict[str, str] | None = None
    ) -> CliResult:
        out = io.StringIO()
        err = io.StringIO()
        code = main(
            list(argv),
            session=session or DummySession([]),  # type: ignore[arg-type]
            stdout=out,
            stderr=err,
            environ={**isolated_env, **(env or {})},
        )
        return CliResult(code, out.getvalue(), err.getvalue())

    return _run


# --- Timing utilities to help identify slow/stalling tests ---


def pytest_runtest_setup(item):  # type: ignore
    _TEST_START_TIMES[item.nodeid] = time.perf_counter()


def pytest_runtest_teardown(item):  # type: ignore
    start = _TEST_START_TIMES.pop(item.nodeid, None)
    if start is not None:
        _TEST_DURATIONS.append((item.nodeid, time.perf_counter() - start))


def pytest_sessionfinish(session, exitstatus):  # type: ignore
    if not _TEST_DURATIONS:
        return
    slow = sorted(_TEST_DURATIONS, key=lambda x: x[1], reverse=True)[:10]
    print("\n=== Slowest Tests (top 10) ===")
    for nodeid, secs in slow:
        print(f"{secs:0.3f}s  {nodeid}")
