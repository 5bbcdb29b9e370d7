"""Tests for mpesa.config -- XDG paths, atomic writes, settings files, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from mpesa.config import (
    _atomic_write,
    env_overrides,
    get_config_dir,
    get_data_dir,
    load_project_config,
    load_settings,
    resolve_credential,
    resolve_settings,
    save_settings,
    user_config_path,
)
from mpesa.exceptions import ConfigError
from mpesa.models import Endpoint, Environment, MpesaConfig, Settings


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("mpesa.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "mpesa"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("mpesa.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        assert get_config_dir() == custom / "mpesa"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("mpesa.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_data_dir() == tmp_path / ".local" / "share" / "mpesa"

    def test_fallback_dirs(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("mpesa.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".mpesa"
        assert get_data_dir() == tmp_path / ".mpesa" / "logs"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "settings.json"
        _atomic_write(target, "{}")
        assert target.read_text(encoding="utf-8") == "{}"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "settings.json"
        target.write_text("old", encoding="utf-8")
        _atomic_write(target, "new")
        assert target.read_text(encoding="utf-8") == "new"
        assert list(tmp_path.iterdir()) == [target]

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "settings.json"
        with patch("mpesa.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Settings file
# ---------------------------------------------------------------------------


class TestSettingsFile:
    def test_load_returns_defaults_when_missing(self, isolated_config: Path) -> None:
        settings = load_settings()
        assert settings == Settings()
        assert settings.config.environment is Environment.SANDBOX

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        settings = Settings(
            consumer_key_source="file:~/.mpesa-key",
            config=MpesaConfig(
                environment=Environment.PRODUCTION,
                max_retries=5,
                endpoints={Endpoint.STK_PUSH: "https://gw.example.com/stk"},
            ),
        )
        path = save_settings(settings)

        assert path == user_config_path()
        loaded = load_settings()
        assert loaded == settings
        assert loaded.config.url_for(Endpoint.STK_PUSH) == "https://gw.example.com/stk"

    def test_saved_file_holds_sources_not_secrets(self, isolated_config: Path) -> None:
        path = save_settings(Settings())
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["consumer_key_source"] == "env:MPESA_CONSUMER_KEY"
        assert data["config"]["environment"] == "sandbox"

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        path = user_config_path()
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_settings()

    def test_load_invalid_schema_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(user_config_path(), {"config": {"max_retries": 0}})
        with pytest.raises(ConfigError):
            load_settings()

    def test_project_config_missing(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_project_config_not_an_object(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "mpesa.json", ["sandbox"])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_project_config()


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveSettings:
    def test_defaults(self, isolated_config: Path) -> None:
        assert resolve_settings() == Settings()

    def test_user_file(self, isolated_config: Path) -> None:
        _write_json(user_config_path(), {"config": {"max_retries": 4}})
        assert resolve_settings().config.max_retries == 4

    def test_project_overrides_user(self, isolated_config: Path) -> None:
        _write_json(user_config_path(), {"config": {"max_retries": 4, "read_timeout": 20}})
        _write_json(isolated_config / "mpesa.json", {"config": {"max_retries": 2}})

        config = resolve_settings().config
        assert config.max_retries == 2
        assert config.read_timeout == 20

    def test_env_overrides_project(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(isolated_config / "mpesa.json", {"config": {"environment": "sandbox"}})
        monkeypatch.setenv("MPESA_ENVIRONMENT", "production")
        monkeypatch.setenv("MPESA_RETRY_BACKOFF", "0.25")

        config = resolve_settings().config
        assert config.environment is Environment.PRODUCTION
        assert config.retry_backoff == 0.25

    def test_explicit_overrides_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MPESA_ENVIRONMENT", "production")
        settings = resolve_settings(environment="sandbox", consumer_key_source="prompt")
        assert settings.config.environment is Environment.SANDBOX
        assert settings.consumer_key_source == "prompt"

    def test_none_explicit_values_ignored(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MPESA_ENVIRONMENT", "production")
        assert resolve_settings(environment=None).config.environment is Environment.PRODUCTION

    def test_invalid_env_value(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MPESA_MAX_RETRIES", "many")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            resolve_settings()

    def test_env_overrides_only_reports_set_vars(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MPESA_READ_TIMEOUT", "30")
        assert env_overrides() == {"read_timeout": "30"}


# ---------------------------------------------------------------------------
# Credential resolution
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_env_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_KEY", "secret123")
        assert resolve_credential("env:MY_KEY") == "secret123"

    def test_env_source_missing_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)
        with pytest.raises(ConfigError, match="not set"):
            resolve_credential("env:NONEXISTENT_VAR")

    def test_env_source_empty_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EMPTY_VAR", "")
        with pytest.raises(ConfigError, match="not set"):
            resolve_credential("env:EMPTY_VAR")

    def test_file_source(self, tmp_path: Path) -> None:
        cred_file = tmp_path / "secret.txt"
        cred_file.write_text("  my-consumer-secret  \n", encoding="utf-8")
        assert resolve_credential(f"file:{cred_file}") == "my-consumer-secret"

    def test_file_source_missing_raises(self) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential("file:/nonexistent/path/secret.txt")

    def test_file_source_unreadable_raises(self, tmp_path: Path) -> None:
        cred_file = tmp_path / "unreadable.txt"
        cred_file.write_text("secret", encoding="utf-8")
        with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
            with pytest.raises(ConfigError, match="Cannot read"):
                resolve_credential(f"file:{cred_file}")

    def test_prompt_source_with_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: True)
        monkeypatch.setattr("getpass.getpass", lambda prompt: "typed-secret")
        assert resolve_credential("prompt") == "typed-secret"

    def test_prompt_source_non_tty_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: False)
        with pytest.raises(ConfigError, match="not a TTY"):
            resolve_credential("prompt")

    def test_unknown_source_raises(self) -> None:
        with pytest.raises(ConfigError, match="Unknown credential source"):
            resolve_credential("keyring:mpesa")
