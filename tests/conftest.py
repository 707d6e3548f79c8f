"""Shared test fixtures for fwcli.

Provides reusable fixtures for isolated config environments, output state,
a fake analysis service built on :class:`httpx.MockTransport`, and running
CLI commands. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest

from fwcli.auth import CredentialStore
from fwcli.models import ApiKey, GlobalConfig, RequestConfig, SessionToken
from fwcli.output import OutputFormat, OutputManager, reset_output, set_output

BASE_URL = "https://fw.test"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Forces XDG resolution and points XDG_CONFIG_HOME and XDG_DATA_HOME at
    subdirectories of tmp_path so that tests never touch real user config
    or credentials. Clears FWCLI_* environment variables and changes the
    working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("fwcli.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("FWCLI_BASE_URL", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config() -> GlobalConfig:
    """Configuration pointing at the fake service with fast settings."""
    return GlobalConfig(base_url=BASE_URL, request=RequestConfig(timeout=5, max_attempts=3))


def _make_token(
    access: str = "access-1",
    refresh: str = "refresh-1",
    expires_in: float = 3600,
) -> SessionToken:
    return SessionToken(
        access_token=access,
        refresh_token=refresh,
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    )


@pytest.fixture
def make_token() -> Callable[..., SessionToken]:
    """Factory for session tokens expiring *expires_in* seconds from now (negative = expired)."""
    return _make_token


@pytest.fixture
def session_token() -> SessionToken:
    return _make_token()


@pytest.fixture
def api_key() -> ApiKey:
    return ApiKey(key_id="key-1", secret="s3cr3t-key")


@pytest.fixture
def store(tmp_path: Path) -> CredentialStore:
    """A credential store in a private temporary directory."""
    directory = tmp_path / "creds"
    directory.mkdir(mode=0o700)
    return CredentialStore(directory / "credentials.json")


# ---------------------------------------------------------------------------
# Fake service
# ---------------------------------------------------------------------------


class FakeService:
    """Route table behind an :class:`httpx.MockTransport`.

    Handlers are registered per ``(method, path)`` and receive the
    :class:`httpx.Request`. Every request is recorded in :attr:`calls`.
    Unregistered routes answer ``404``.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.calls: list[httpx.Request] = []

    def on(
        self,
        method: str,
        path: str,
        handler: Optional[Callable[[httpx.Request], httpx.Response]] = None,
        *,
        status: int = 200,
        json_body: Any = None,
        content: Optional[bytes] = None,
    ) -> None:
        """Register a handler, or a canned response when *handler* is omitted."""
        if handler is None:

            def handler(request: httpx.Request) -> httpx.Response:
                if content is not None:
                    return httpx.Response(status, content=content)
                if json_body is None:
                    return httpx.Response(status)
                return httpx.Response(status, json=json_body)

        self.routes[(method.upper(), path)] = handler

    def calls_to(self, method: str, path: str) -> list[httpx.Request]:
        return [
            call for call in self.calls
            if call.method == method.upper() and call.url.path == path
        ]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"message": "no such route"})
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    @staticmethod
    def token_grant(access: str = "access-1", refresh: str = "refresh-1", expires_in: int = 3600):
        """Handler answering with a token grant."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"access_token": access, "refresh_token": refresh, "expires_in": expires_in},
            )

        return handler

    @staticmethod
    def json_of(request: httpx.Request) -> Any:
        """Decode the JSON body of a recorded request."""
        return json.loads(request.content)


@pytest.fixture
def service() -> FakeService:
    return FakeService()


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Set up a quiet output manager for tests that don't care about output.

    Installs a PLAIN-format, quiet OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Set up JSON output for tests that check JSON-formatted output.

    Installs a JSON-format OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
