"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for mutauth:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.mutauth/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~mutauth.models.GlobalConfig`
  JSON file storing defaults (flow variant, backend, verification).
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables and the global config into the effective settings.
* **Credential resolution** -- :func:`resolve_credential` reads the
  developer token from env vars, files, interactive prompts, or a
  credential store.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Optional

from mutauth.exceptions import ConfigError
from mutauth.models import FlowVariant, GlobalConfig

_APP_NAME = "mutauth"
_CONFIG_FILENAME = "config.json"

ENV_VARIANT = "MUTAUTH_VARIANT"
ENV_BACKEND = "MUTAUTH_BACKEND"
ENV_DEV = "MUTAUTH_DEV"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/mutauth/`` (default ``~/.config/mutauth/``).
    On macOS/Windows: ``~/.mutauth/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CONFIG_HOME", (".config",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs, credentials), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/mutauth/`` (default ``~/.local/share/mutauth/``).
    On macOS/Windows: ``~/.mutauth/data/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_DATA_HOME", (".local", "share"))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    With *mode*, permissions are applied to the temp file before any data is
    written, so the final file never exists with looser permissions.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On success the temp file is renamed over *path*; on any failure the temp
    file is cleaned up.
    """
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
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
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


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~mutauth.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk.

    Args:
        config: The configuration to save.
    """
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def _env_flag(name: str) -> Optional[bool]:
    """Read a boolean environment variable; ``None`` when unset or empty."""
    value = os.environ.get(name, "")
    if not value:
        return None
    return value.lower() in ("1", "true", "yes", "on")


def resolve_settings(
    cli_variant: Optional[str] = None,
    cli_backend: Optional[str] = None,
    cli_dev_mode: Optional[bool] = None,
    cli_verify: Optional[bool] = None,
) -> GlobalConfig:
    """Resolve the effective settings with full precedence chain.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``MUTAUTH_VARIANT``, ``MUTAUTH_BACKEND``,
           ``MUTAUTH_DEV``)
        3. User config (``~/.config/mutauth/config.json``)
        4. Defaults

    Returns:
        A :class:`~mutauth.models.GlobalConfig` holding the merged values.

    Raises:
        ConfigError: If the config file is invalid or a variant name is
            not one of ``auto``, ``single``, ``multi``.
    """
    settings = load_global_config()

    variant = cli_variant or os.environ.get(ENV_VARIANT) or None
    if variant is not None:
        try:
            settings.variant = FlowVariant(variant.lower())
        except ValueError:
            choices = ", ".join(v.value for v in FlowVariant)
            raise ConfigError(
                f"Unknown flow variant '{variant}': must be one of {choices}"
            ) from None

    backend = cli_backend or os.environ.get(ENV_BACKEND) or None
    if backend is not None:
        settings.backend = backend

    env_dev = _env_flag(ENV_DEV)
    if cli_dev_mode is not None:
        settings.dev_mode = cli_dev_mode
    elif env_dev is not None:
        settings.dev_mode = env_dev

    if cli_verify is not None:
        settings.verify = cli_verify

    return settings


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts user interactively (requires a TTY)
        - ``"store:NAME"`` -- reads from the credential store entry *NAME*

    Args:
        source: The source descriptor string.

    Returns:
        The resolved credential string.

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        file_path = source[5:]
        path = Path(file_path).expanduser()
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
        return getpass.getpass("Enter developer token: ")

    if source.startswith("store:"):
        name = source[6:]
        from mutauth.session.credential_store import CredentialStore

        store = CredentialStore(name)
        if not store.is_valid():
            raise ConfigError(
                f"No valid credential in store '{name}' (source: {source})"
            )
        entry = store.load()
        assert entry is not None  # is_valid() guarantees this
        return entry.credential

    raise ConfigError(f"Unknown credential source format: {source}")
