"""Tests for mutauth.config -- XDG paths, atomic writes, precedence, credentials."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from mutauth.config import (
    _atomic_write,
    get_config_dir,
    get_data_dir,
    load_global_config,
    resolve_credential,
    resolve_settings,
    save_global_config,
)
from mutauth.exceptions import ConfigError
from mutauth.models import FlowVariant, GlobalConfig
from mutauth.session.credential_store import CredentialEntry, CredentialStore


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
        monkeypatch.setattr("mutauth.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "mutauth"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("mutauth.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        assert get_config_dir() == custom / "mutauth"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("mutauth.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_data_dir() == tmp_path / ".local" / "share" / "mutauth"

    def test_fallback_dirs(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("mutauth.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".mutauth"
        assert get_data_dir() == tmp_path / ".mutauth" / "data"
        assert get_data_dir().is_dir()


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "out.json"
        _atomic_write(target, "hello")
        assert target.read_text(encoding="utf-8") == "hello"

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "out.json"
        with patch("mutauth.config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                _atomic_write(target, "data")
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
    def test_mode_applied(self, tmp_path: Path) -> None:
        target = tmp_path / "secret.json"
        _atomic_write(target, "{}", mode=0o600)
        assert stat.S_IMODE(target.stat().st_mode) == 0o600


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_load_returns_defaults_when_missing(self, isolated_config: Path) -> None:
        config = load_global_config()
        assert config == GlobalConfig()
        assert config.variant == FlowVariant.AUTO
        assert config.backend == "qt"
        assert config.storefront_url == "https://api.music.apple.com/v1/me/storefront"

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(variant=FlowVariant.SINGLE, return_url="https://app.local/"))
        loaded = load_global_config()
        assert loaded.variant == FlowVariant.SINGLE
        assert loaded.return_url == "https://app.local/"

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text("{nope", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_load_invalid_schema_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(get_config_dir() / "config.json", {"variant": "triple"})
        with pytest.raises(ConfigError):
            load_global_config()


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveSettings:
    def test_defaults(self, isolated_config: Path) -> None:
        settings = resolve_settings()
        assert settings.variant == FlowVariant.AUTO
        assert settings.dev_mode is False
        assert settings.verify is False

    def test_env_overrides_file(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        save_global_config(GlobalConfig(variant=FlowVariant.SINGLE, backend="qt"))
        monkeypatch.setenv("MUTAUTH_VARIANT", "multi")
        monkeypatch.setenv("MUTAUTH_BACKEND", "other")
        monkeypatch.setenv("MUTAUTH_DEV", "1")

        settings = resolve_settings()
        assert settings.variant == FlowVariant.MULTI
        assert settings.backend == "other"
        assert settings.dev_mode is True

    def test_cli_overrides_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MUTAUTH_VARIANT", "multi")
        monkeypatch.setenv("MUTAUTH_DEV", "true")

        settings = resolve_settings(cli_variant="SINGLE", cli_dev_mode=False, cli_verify=True)
        assert settings.variant == FlowVariant.SINGLE
        assert settings.dev_mode is False
        assert settings.verify is True

    def test_file_value_kept_without_overrides(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(dev_mode=True, verify=True))
        settings = resolve_settings()
        assert settings.dev_mode is True
        assert settings.verify is True

    def test_unknown_variant_raises(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="Unknown flow variant"):
            resolve_settings(cli_variant="both")


# ---------------------------------------------------------------------------
# Credential resolution
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_env_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APPLE_DEVELOPER_TOKEN", "eyJdev")
        assert resolve_credential("env:APPLE_DEVELOPER_TOKEN") == "eyJdev"

    def test_env_source_missing_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)
        with pytest.raises(ConfigError, match="not set"):
            resolve_credential("env:NONEXISTENT_VAR")

    def test_file_source(self, tmp_path: Path) -> None:
        cred_file = tmp_path / "token.txt"
        cred_file.write_text("  eyJdev  \n", encoding="utf-8")
        assert resolve_credential(f"file:{cred_file}") == "eyJdev"

    def test_file_source_missing_raises(self) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential("file:/nonexistent/path/token.txt")

    def test_prompt_source_with_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: True)
        monkeypatch.setattr("getpass.getpass", lambda prompt: "typed")
        assert resolve_credential("prompt") == "typed"

    def test_prompt_source_non_tty_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: False)
        with pytest.raises(ConfigError, match="not a TTY"):
            resolve_credential("prompt")

    def test_store_source(self, isolated_config: Path) -> None:
        CredentialStore("developer").save(CredentialEntry(auth_type="manual", credential="eyJstored"))
        assert resolve_credential("store:developer") == "eyJstored"

    def test_store_source_missing_raises(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="No valid credential"):
            resolve_credential("store:absent")

    def test_unknown_source_raises(self) -> None:
        with pytest.raises(ConfigError, match="Unknown credential source"):
            resolve_credential("magic:wand")
