"""Shared test fixtures for mpesa.

Provides fake clocks and sleeps, ``httpx.MockTransport`` helpers that
emulate the token endpoint, isolated config directories, and output state
management. These fixtures are discovered by pytest automatically.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import httpx
import pytest

from mpesa.models import MpesaConfig
from mpesa.output import OutputFormat, OutputManager, reset_output, set_output

Handler = Callable[[httpx.Request], httpx.Response]


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, which go stale once CliRunner restores the streams.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Sleep replacement that records the requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


def _token_response(token: str = "tok-1", expires_in: object = 3600) -> httpx.Response:
    return httpx.Response(200, json={"access_token": token, "expires_in": expires_in})


def _routed_handler(resource: Handler, tokens: Optional[list[str]] = None) -> Handler:
    """Answer token requests from *tokens* in order; pass everything else to *resource*.

    Once *tokens* is exhausted the last one is repeated. The returned
    handler exposes ``token_requests`` for assertions.
    """
    issued = list(tokens or ["tok-1"])

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/token/generate":
            token = issued[min(handler.token_requests, len(issued) - 1)]
            handler.token_requests += 1
            return _token_response(token)
        return resource(request)

    handler.token_requests = 0  # type: ignore[attr-defined]
    return handler


@pytest.fixture
def token_response() -> Callable[..., httpx.Response]:
    """Factory for a successful token-endpoint response."""
    return _token_response


@pytest.fixture
def routed() -> Callable[..., Handler]:
    """Factory wrapping a resource handler with a fake token endpoint."""
    return _routed_handler


@pytest.fixture
def mock_client():
    """Factory for ``httpx.Client`` objects backed by ``MockTransport``; closed after the test."""
    clients: list[httpx.Client] = []

    def factory(handler: Handler) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()


@pytest.fixture
def config() -> MpesaConfig:
    return MpesaConfig()


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at subdirectories of tmp_path, clears all
    MPESA_* variables, and changes the working directory to tmp_path.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("mpesa.config._is_xdg_platform", lambda: True)

    for var in [
        "MPESA_ENVIRONMENT",
        "MPESA_MAX_RETRIES",
        "MPESA_RETRY_BACKOFF",
        "MPESA_CONNECT_TIMEOUT",
        "MPESA_READ_TIMEOUT",
        "MPESA_WRITE_TIMEOUT",
        "MPESA_CONSUMER_KEY",
        "MPESA_CONSUMER_SECRET",
        "MPESA_API_KEY",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output / CLI
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    from typer.testing import CliRunner

    return CliRunner()
