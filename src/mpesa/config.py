"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for the ``mpesa`` CLI and
for applications that prefer file-based setup over constructing
:class:`~mpesa.models.MpesaConfig` in code:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.mpesa/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Settings file** -- a single :class:`~mpesa.models.Settings` JSON file
  holding credential *sources* and the client config. Secrets themselves
  are never written.
* **Precedence resolution** -- :func:`resolve_settings` merges explicit
  overrides, ``MPESA_*`` environment variables, the project-local
  ``./mpesa.json`` and the user file.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files, or an interactive prompt.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

from mpesa.exceptions import ConfigError
from mpesa.models import Settings

_APP_NAME = "mpesa"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "mpesa.json"

# Environment variable -> MpesaConfig field.
ENV_OVERRIDES: dict[str, str] = {
    "MPESA_ENVIRONMENT": "environment",
    "MPESA_MAX_RETRIES": "max_retries",
    "MPESA_RETRY_BACKOFF": "retry_backoff",
    "MPESA_CONNECT_TIMEOUT": "connect_timeout",
    "MPESA_READ_TIMEOUT": "read_timeout",
    "MPESA_WRITE_TIMEOUT": "write_timeout",
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


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

    On Linux/BSD: ``$XDG_CONFIG_HOME/mpesa/`` (default ``~/.config/mpesa/``).
    On macOS/Windows: ``~/.mpesa/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/mpesa/`` (default ``~/.local/share/mpesa/``).
    On macOS/Windows: ``~/.mpesa/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def user_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def project_config_path() -> Path:
    return Path.cwd() / _PROJECT_CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* via a temp file in the same directory and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Settings file ---


def _read_json(path: Path, label: str) -> Optional[dict[str, Any]]:
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {label} at {path}: expected a JSON object")
    return data


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from *path* (default: the user config file).

    Returns:
        The deserialised :class:`~mpesa.models.Settings`, or defaults when
        the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = path or user_config_path()
    data = _read_json(path, "settings")
    if data is None:
        return Settings()
    try:
        return Settings.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid settings at {path}: {exc}") from exc


def save_settings(settings: Settings, path: Optional[Path] = None) -> Path:
    """Persist *settings* atomically and return the path written."""
    path = path or user_config_path()
    data = settings.model_dump(mode="json")
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


def load_project_config() -> Optional[dict[str, Any]]:
    """Load the raw project-local ``./mpesa.json``, or ``None`` if absent.

    Raises:
        ConfigError: If the file exists but contains invalid JSON.
    """
    return _read_json(project_config_path(), "project config")


# --- Precedence resolution ---


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overlay* into a copy of *base*."""
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def env_overrides() -> dict[str, str]:
    """Return the ``MpesaConfig`` fields set through ``MPESA_*`` variables."""
    overrides: dict[str, str] = {}
    for var, field in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value:
            overrides[field] = value
    return overrides


def resolve_settings(**explicit: Any) -> Settings:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. Explicit keyword arguments (``MpesaConfig`` field names, or
           ``consumer_key_source`` / ``consumer_secret_source``)
        2. Environment variables (``MPESA_ENVIRONMENT``, ``MPESA_MAX_RETRIES``, ...)
        3. Project config (``./mpesa.json``)
        4. User config (``~/.config/mpesa/config.json``)
        5. Defaults

    ``None`` values in *explicit* are ignored, so CLI options can be passed
    straight through.

    Raises:
        ConfigError: If a file is malformed or the merged result is invalid.
    """
    data: dict[str, Any] = _read_json(user_config_path(), "settings") or {}

    project = load_project_config()
    if project is not None:
        data = _merge(data, project)

    data = _merge(data, {"config": env_overrides()})

    source_keys = ("consumer_key_source", "consumer_secret_source")
    given = {k: v for k, v in explicit.items() if v is not None}
    sources = {k: v for k, v in given.items() if k in source_keys}
    config_fields = {k: v for k, v in given.items() if k not in source_keys}
    data = _merge(data, {**sources, "config": config_fields})

    try:
        return Settings.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts interactively (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if not value:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter credential: ")

    raise ConfigError(f"Unknown credential source format: {source}")
