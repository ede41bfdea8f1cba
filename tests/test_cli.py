"""End-to-end tests for the ``halclient`` command line.

The root Typer app is invoked through ``CliRunner``; the client factory
used by ``halclient query`` is patched to serve canned HAL payloads
from the in-memory transport so no network access happens.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from halclient import __version__
from halclient.app import app
from halclient.cache import ResponseCache
from halclient.client.hal_client import HalClient
from halclient.commands.cache import CLI_CACHE_TTL_SECONDS, cli_cache_config
from halclient.config import load_config
from halclient.exceptions import RequestFailedError
from halclient.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
)
from halclient.models import HalConfiguration


API = "http://api.example.com/api"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def patched_client(monkeypatch: pytest.MonkeyPatch, isolated_config: Path, fake_transport):
    """Route ``halclient query`` through the fake transport and the CLI cache directory."""
    caches: list[ResponseCache] = []

    def _build(config: HalConfiguration) -> HalClient:
        cache = ResponseCache(cli_cache_config(config))
        caches.append(cache)
        return HalClient(config, transport=fake_transport, cache=cache)

    monkeypatch.setattr("halclient.commands.query._build_client", _build)
    yield fake_transport
    for cache in caches:
        cache.close()


def _invoke(runner: CliRunner, *args: str):
    return runner.invoke(app, ["--quiet", "--json", "--base-url", API, *args])


# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------


class TestRootApp:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"halclient {__version__}" in result.output

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("query", "config", "cache"):
            assert name in result.output


# ---------------------------------------------------------------------------
# query
# ---------------------------------------------------------------------------


class TestQueryCommand:
    def test_get_prints_hal_document(self, runner: CliRunner, patched_client, paged_payload) -> None:
        patched_client.responses[f"{API}/users/search/all"] = paged_payload

        result = _invoke(runner, "query", "users", "/search/all", "--page", "0", "--size", "2")

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == paged_payload
        method, url, params, body = patched_client.calls[0]
        assert (method, url) == ("GET", f"{API}/users/search/all")
        assert params == {"page": 0, "size": 2}
        assert body is None

    def test_params_and_sort(self, runner: CliRunner, patched_client) -> None:
        patched_client.responses[f"{API}/users/search/findByName"] = {"_links": {}}

        result = _invoke(
            runner, "query", "users", "/search/findByName",
            "-P", "name=alice", "-P", "name=bob", "--sort", "name,desc",
        )

        assert result.exit_code == 0, result.output
        params = patched_client.calls[0][2]
        assert params == {"name": ["alice", "bob"], "sort": ["name,DESC"]}

    def test_post_sends_body(self, runner: CliRunner, patched_client) -> None:
        patched_client.responses[f"{API}/users/1"] = {"name": "bob", "_links": {}}

        result = _invoke(runner, "query", "users", "/1", "-X", "post", "-d", '{"name": "bob", "age": null}')

        assert result.exit_code == 0, result.output
        assert patched_client.calls[0][0] == "POST"
        assert patched_client.calls[0][3] == {"name": "bob"}
        assert json.loads(result.stdout) == {"name": "bob"}

    def test_second_get_served_from_cache(self, runner: CliRunner, patched_client) -> None:
        patched_client.responses[f"{API}/users/1"] = {"name": "alice", "_links": {}}

        first = _invoke(runner, "query", "users", "/1")
        second = _invoke(runner, "query", "users", "/1")

        assert first.exit_code == second.exit_code == 0
        assert patched_client.count("GET") == 1
        assert json.loads(second.stdout) == {"name": "alice"}

    def test_cached_response_expires_between_runs(
        self, runner: CliRunner, patched_client, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        url = f"{API}/users/1"
        patched_client.responses[url] = {"name": "alice", "_links": {}}
        assert _invoke(runner, "query", "users", "/1").exit_code == 0

        patched_client.responses[url] = {"name": "bob", "_links": {}}
        real_time = time.time
        monkeypatch.setattr(time, "time", lambda: real_time() + CLI_CACHE_TTL_SECONDS + 1)
        result = _invoke(runner, "query", "users", "/1")

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"name": "bob"}
        assert patched_client.count("GET") == 2

    def test_warns_about_unhydrated_elements(self, runner: CliRunner, patched_client) -> None:
        patched_client.responses[f"{API}/users/search/all"] = {
            "_embedded": {"users": [{"name": "alice", "_links": {}}, "garbage"]}
        }

        result = _invoke(runner, "query", "users", "/search/all")

        assert result.exit_code == 0, result.output
        assert "1 element(s) could not be hydrated" in result.output

    def test_unsupported_method(self, runner: CliRunner, patched_client) -> None:
        result = _invoke(runner, "query", "users", "/1", "-X", "DELETE")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "GET/POST/PUT/PATCH" in result.output
        assert patched_client.calls == []

    def test_missing_base_url(self, runner: CliRunner, patched_client) -> None:
        result = runner.invoke(app, ["--quiet", "query", "users", "/1"])
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "base_api_url" in result.output

    def test_request_failure_exit_code(self, runner: CliRunner, patched_client) -> None:
        url = f"{API}/users/9"
        patched_client.responses[url] = RequestFailedError(method="GET", url=url, status=404)

        result = _invoke(runner, "query", "users", "/9")

        assert result.exit_code == EXIT_NOT_FOUND
        assert "HTTP 404" in result.output

    @pytest.mark.parametrize(
        "extra",
        [
            ["-d", "{not json"],
            ["-P", "novalue"],
        ],
    )
    def test_bad_input(self, runner: CliRunner, patched_client, extra: list[str]) -> None:
        result = _invoke(runner, "query", "users", "/1", "-X", "POST", *extra)
        assert result.exit_code == 2
        assert patched_client.calls == []


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_set_and_show(self, runner: CliRunner, isolated_config: Path) -> None:
        assert runner.invoke(app, ["config", "set", "base_api_url", API]).exit_code == 0
        assert runner.invoke(app, ["config", "set", "verbose_logs", "true"]).exit_code == 0
        assert runner.invoke(app, ["config", "set", "cache.ttl_seconds", "60"]).exit_code == 0

        saved = load_config()
        assert saved.base_api_url == API
        assert saved.verbose_logs is True
        assert saved.cache.ttl_seconds == 60

        result = runner.invoke(app, ["--quiet", "--json", "config", "show"])
        assert result.exit_code == 0
        shown: dict[str, Any] = json.loads(result.stdout)
        assert shown["base_api_url"] == API
        assert shown["cache"]["ttl_seconds"] == 60

    def test_show_applies_base_url_flag(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--quiet", "--json", "--base-url", "http://cli/api", "config", "show"])
        assert json.loads(result.stdout)["base_api_url"] == "http://cli/api"

    def test_set_null(self, runner: CliRunner, isolated_config: Path) -> None:
        runner.invoke(app, ["config", "set", "base_api_url", API])
        assert runner.invoke(app, ["config", "set", "base_api_url", "null"]).exit_code == 0
        assert load_config().base_api_url is None

    @pytest.mark.parametrize(
        "key,value",
        [
            ("nope", "1"),
            ("cache.nope", "1"),
            ("cache", "1"),
            ("request.max_retries", "many"),
            ("cache.max_entries", "0"),
        ],
    )
    def test_set_rejects(self, runner: CliRunner, isolated_config: Path, key: str, value: str) -> None:
        result = runner.invoke(app, ["config", "set", key, value])
        assert result.exit_code == 2
        assert load_config() == HalConfiguration()


# ---------------------------------------------------------------------------
# cache
# ---------------------------------------------------------------------------


class TestCacheCommands:
    def _stats(self, runner: CliRunner) -> dict[str, Any]:
        result = _invoke(runner, "cache", "stats")
        assert result.exit_code == 0, result.output
        return json.loads(result.stdout)

    def test_stats_and_clear(self, runner: CliRunner, patched_client) -> None:
        patched_client.responses[f"{API}/users/1"] = {"_links": {}}
        assert self._stats(runner)["size"] == 0

        assert _invoke(runner, "query", "users", "/1").exit_code == 0
        stats = self._stats(runner)
        assert stats["size"] == 1
        assert stats["enabled"] is True

        result = runner.invoke(app, ["cache", "clear"])
        assert result.exit_code == 0
        assert "Cleared 1 cached response(s)." in result.output
        assert self._stats(runner)["size"] == 0

    def test_cli_cache_defaults(self, isolated_config: Path) -> None:
        cache_config = cli_cache_config(HalConfiguration())
        assert cache_config.ttl_seconds == CLI_CACHE_TTL_SECONDS
        assert cache_config.directory == str(isolated_config / "cache" / "halclient" / "responses")

    def test_cli_cache_keeps_configured_values(self, isolated_config: Path) -> None:
        config = HalConfiguration(cache={"ttl_seconds": 5, "directory": str(isolated_config / "c")})
        assert cli_cache_config(config) is config.cache
