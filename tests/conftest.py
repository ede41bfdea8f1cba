"""Shared test fixtures for halclient.

Provides reusable HAL payloads, an in-memory transport, isolated config
environments, output state management and a CLI runner. These fixtures
are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import pytest

from halclient.cache import ResponseCache
from halclient.config import reset_configuration
from halclient.hal.registry import reset_registry
from halclient.models import CacheConfig
from halclient.output import OutputFormat, OutputManager, reset_output, set_output


API = "http://api.example.com/api"


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_globals_between_tests() -> None:
    """Reset the global OutputManager, registry and configuration after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file"). The resource type registry and the
    process configuration are write-once, so every test starts fresh.
    """
    yield
    reset_output()
    reset_registry()
    reset_configuration()


# ---------------------------------------------------------------------------
# HAL payload fixtures
# ---------------------------------------------------------------------------


def _user(user_id: int, name: str) -> dict[str, Any]:
    return {
        "name": name,
        "_links": {
            "self": {"href": f"{API}/users/{user_id}"},
            "address": {"href": f"{API}/users/{user_id}/address"},
        },
    }


@pytest.fixture
def user_payload() -> dict[str, Any]:
    """A single HAL resource."""
    return {
        "name": "alice",
        "age": 31,
        "tags": ["admin", "ops"],
        "_links": {
            "self": {"href": f"{API}/users/1"},
            "address": {"href": f"{API}/users/1/address"},
            "orders": {"href": f"{API}/users/1/orders{{?page,size}}", "templated": True},
        },
    }


@pytest.fixture
def collection_payload() -> dict[str, Any]:
    """An un-paged collection (``_embedded`` without ``_links``)."""
    return {"_embedded": {"users": [_user(1, "alice"), _user(2, "bob"), _user(3, "carol")]}}


@pytest.fixture
def paged_payload() -> dict[str, Any]:
    """A Spring-style paged collection."""
    return {
        "_embedded": {"users": [_user(1, "alice"), _user(2, "bob")]},
        "_links": {
            "self": {"href": f"{API}/users?page=0&size=2"},
            "next": {"href": f"{API}/users?page=1&size=2"},
            "last": {"href": f"{API}/users?page=2&size=2"},
        },
        "page": {"size": 2, "totalElements": 5, "totalPages": 3, "number": 0},
    }


# ---------------------------------------------------------------------------
# In-memory transport
# ---------------------------------------------------------------------------


class FakeTransport:
    """Transport serving canned payloads and recording every call.

    ``responses`` maps a URL to a payload or an exception instance to raise.
    When ``gate`` is set, every call waits on it before answering, which
    lets tests pile up concurrent callers.
    """

    def __init__(self, responses: Optional[dict[str, Any]] = None) -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.calls: list[tuple[str, str, Optional[dict[str, Any]], Any]] = []
        self.gate: Optional[asyncio.Event] = None

    async def _answer(self, method: str, url: str, params: Any, body: Any) -> Any:
        self.calls.append((method, url, params, body))
        if self.gate is not None:
            await self.gate.wait()
        value = self.responses.get(url)
        if isinstance(value, BaseException):
            raise value
        return value

    async def get(self, url: str, *, params: Optional[dict[str, Any]] = None) -> Any:
        return await self._answer("GET", url, params, None)

    async def post(self, url: str, body: Any = None, *, params: Optional[dict[str, Any]] = None) -> Any:
        return await self._answer("POST", url, params, body)

    async def put(self, url: str, body: Any = None, *, params: Optional[dict[str, Any]] = None) -> Any:
        return await self._answer("PUT", url, params, body)

    async def patch(self, url: str, body: Any = None, *, params: Optional[dict[str, Any]] = None) -> Any:
        return await self._answer("PATCH", url, params, body)

    def count(self, method: str = "GET") -> int:
        return sum(1 for call in self.calls if call[0] == method)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


# ---------------------------------------------------------------------------
# Cache fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cache(tmp_path: Path) -> ResponseCache:
    """An enabled, unbounded ResponseCache under tmp_path."""
    c = ResponseCache(CacheConfig(directory=str(tmp_path / "cache")))
    yield c
    c.close()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_CACHE_HOME to subdirectories of tmp_path
    so that tests never touch real user config, clears all HALCLIENT_*
    environment variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("halclient.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))

    for var in [
        "HALCLIENT_BASE_API_URL",
        "HALCLIENT_VERBOSE_LOGS",
        "HALCLIENT_CACHE_DIR",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
