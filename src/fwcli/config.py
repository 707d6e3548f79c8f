"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for fwcli:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.fwcli/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~fwcli.models.GlobalConfig` JSON
  file storing the service URL, request settings and output defaults.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables and the config file into the effective settings.
* **Secret sources** -- :func:`resolve_credential` reads a password from an
  env var, a file, or an interactive prompt.

All file writes go through :func:`atomic_write` (temp file in the target
directory, fsync, then ``os.replace``) so a concurrent reader never sees a
half-written file.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Optional, Union

from fwcli.exceptions import ConfigError, LocalStorageError
from fwcli.models import GlobalConfig

_APP_NAME = "fwcli"
_CONFIG_FILENAME = "config.json"
_ENV_BASE_URL = "FWCLI_BASE_URL"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/FreeBSD)."""
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

    On Linux/BSD: ``$XDG_CONFIG_HOME/fwcli/`` (default ``~/.config/fwcli/``).
    On macOS/Windows: ``~/.fwcli/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (credentials, crash logs), creating it if necessary.

    The directory is created owner-only (``0o700``) because it holds the
    credential file.

    On Linux/BSD: ``$XDG_DATA_HOME/fwcli/`` (default ``~/.local/share/fwcli/``).
    On macOS/Windows: ``~/.fwcli/data/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(mode=0o700, parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: Union[str, bytes], mode: Optional[int] = None) -> None:
    """Write *data* to *path* atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. When *mode* is
    given, it is applied to the temp file before any content is written,
    so the final file never exists with looser permissions. On any failure
    the temp file is removed and the exception re-raised.

    Args:
        path: Destination file.
        data: Text (written as UTF-8) or raw bytes.
        mode: Optional permission bits, e.g. ``0o600``.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = data.encode("utf-8") if isinstance(data, str) else data

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(payload)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        # Includes KeyboardInterrupt: never leave temp files behind.
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
        The deserialised :class:`~fwcli.models.GlobalConfig`. If the file
        does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk.

    Args:
        config: The configuration to save.

    Raises:
        LocalStorageError: If the file cannot be written.
    """
    data = config.model_dump(mode="json")
    path = _global_config_path()
    try:
        atomic_write(path, json.dumps(data, indent=2) + "\n")
    except OSError as exc:
        raise LocalStorageError(f"Cannot write config {path}: {exc.strerror or exc}") from exc


# --- Precedence resolution ---


def resolve_config(cli_base_url: Optional[str] = None) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flag ``--server``
        2. Environment variable ``FWCLI_BASE_URL``
        3. User config (``~/.config/fwcli/config.json``)
        4. Defaults

    Returns:
        The merged :class:`~fwcli.models.GlobalConfig`.
    """
    config = load_global_config()

    env_base_url = os.environ.get(_ENV_BASE_URL)
    if cli_base_url:
        config.base_url = cli_base_url
    elif env_base_url:
        config.base_url = env_base_url
    config.base_url = config.base_url.rstrip("/")

    return config


# --- Secret source resolution ---


def resolve_credential(source: str, prompt_text: str = "Password: ") -> str:
    """Resolve a secret from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts without echo (requires a TTY)

    Args:
        source: The source descriptor string.
        prompt_text: Text shown by the interactive prompt.

    Returns:
        The resolved secret.

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
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Secret file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read secret file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for a password: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass(prompt_text)

    raise ConfigError(f"Unknown secret source format: {source}")
