"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent and process-wide configuration for
halclient:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.halclient/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_cache_dir`.
* **User config** -- A single :class:`~halclient.models.HalConfiguration`
  JSON file. Managed via :func:`load_config` and :func:`save_config`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config (``./halclient.json``) and
  the user config into the effective configuration.
* **Process configuration** -- :func:`configure` installs the
  configuration (and optionally the resource types) exactly once per
  process; :func:`get_configuration` returns it.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from halclient.exceptions import ConfigError
from halclient.hal.registry import ResourceTypes, configure_resource_types
from halclient.models import HalConfiguration

_APP_NAME = "halclient"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "halclient.json"

ENV_BASE_API_URL = "HALCLIENT_BASE_API_URL"
ENV_VERBOSE_LOGS = "HALCLIENT_VERBOSE_LOGS"
ENV_CACHE_DIR = "HALCLIENT_CACHE_DIR"

_TRUTHY = {"1", "true", "yes", "on"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/halclient/`` (default ``~/.config/halclient/``).
    On macOS/Windows: ``~/.halclient/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the response cache directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CACHE_HOME/halclient/`` (default ``~/.cache/halclient/``).
    On macOS/Windows: ``~/.halclient/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with fd:
            fd.write(data)
            fd.flush()
            os.fsync(fd.fileno())
        os.replace(fd.name, path)
    except BaseException:
        Path(fd.name).unlink(missing_ok=True)
        raise


# --- User and project config ---


def config_path() -> Path:
    """Path to the user config file."""
    return get_config_dir() / _CONFIG_FILENAME


def _read_json(path: Path, label: str) -> Optional[dict[str, Any]]:
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {label} at {path}: expected a JSON object")
    return data


def load_config() -> HalConfiguration:
    """Load the user configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~halclient.models.HalConfiguration`; a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = config_path()
    data = _read_json(path, "config")
    if data is None:
        return HalConfiguration()
    try:
        return HalConfiguration.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: HalConfiguration) -> None:
    """Persist the user configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(config_path(), json.dumps(data, indent=2) + "\n")


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local overrides from ``./halclient.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    return _read_json(Path.cwd() / _PROJECT_CONFIG_FILENAME, "project config")


# --- Precedence resolution ---


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_verbose: Optional[bool] = None,
) -> HalConfiguration:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (``cli_base_url``, ``cli_verbose``)
        2. Environment variables (``HALCLIENT_BASE_API_URL``,
           ``HALCLIENT_VERBOSE_LOGS``, ``HALCLIENT_CACHE_DIR``)
        3. Project config (``./halclient.json``)
        4. User config (``~/.config/halclient/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any layer is invalid.
    """
    # 5 + 4
    data = load_config().model_dump(mode="json")

    # 3
    project = load_project_config()
    if project is not None:
        data = _deep_merge(data, project)

    # 2
    env_base_url = os.environ.get(ENV_BASE_API_URL)
    if env_base_url:
        data["base_api_url"] = env_base_url
    env_verbose = os.environ.get(ENV_VERBOSE_LOGS)
    if env_verbose:
        data["verbose_logs"] = env_verbose.strip().lower() in _TRUTHY
    env_cache_dir = os.environ.get(ENV_CACHE_DIR)
    if env_cache_dir:
        data.setdefault("cache", {})["directory"] = env_cache_dir

    # 1
    if cli_base_url is not None:
        data["base_api_url"] = cli_base_url
    if cli_verbose is not None:
        data["verbose_logs"] = cli_verbose

    try:
        return HalConfiguration.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# --- Process configuration ---

_configuration: Optional[HalConfiguration] = None


def configure(
    config: HalConfiguration,
    resource_types: Optional[ResourceTypes] = None,
) -> HalConfiguration:
    """Install the process-wide configuration. May be called once.

    Args:
        config: The configuration every :class:`~halclient.client.hal_client.HalClient`
            created without an explicit one will use.
        resource_types: Concrete resource classes to register with the
            process-wide registry.

    Raises:
        ConfigError: If the process is already configured, or the resource
            types cannot be registered.
    """
    global _configuration
    if _configuration is not None:
        raise ConfigError("halclient is already configured")
    if resource_types is not None:
        configure_resource_types(resource_types)
    _configuration = config
    return config


def get_configuration() -> HalConfiguration:
    """Return the process-wide configuration, or defaults when unconfigured."""
    if _configuration is None:
        return HalConfiguration()
    return _configuration


def reset_configuration() -> None:
    """Forget the process-wide configuration.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _configuration
    _configuration = None
