from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import SettingsError
from .reconnect import RECONNECT_MODES, ReconnectPolicy
from .types import RemoteProcess

LOG_LEVEL_ENV = "KDBQ_LOG_LEVEL"
_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


def _default_settings_path() -> Path:
    """Return bundled default settings TOML path.

    Example:
        ```python
        path = _default_settings_path()
        ```
    """
    return Path(__file__).with_name("default_settings.toml")


def _read_settings_toml(path: Path) -> dict[str, Any]:
    """Read settings TOML and return the ``[client]`` table (or top-level keys).

    Example:
        ```python
        raw = _read_settings_toml(Path("/etc/kdbq.toml"))
        ```
    """
    if not path.exists():
        raise SettingsError(f"Settings file not found: {path}")
    try:
        raw = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise SettingsError(f"Invalid TOML in {path}: {exc}") from exc
    client_obj = raw.get("client", raw)
    if not isinstance(client_obj, dict):
        raise SettingsError("Client settings must be a TOML table")
    return client_obj


_DEFAULT_SETTINGS_RAW = _read_settings_toml(_default_settings_path())
DEFAULT_HOST = str(_DEFAULT_SETTINGS_RAW.get("host", "localhost"))
DEFAULT_PORT = int(_DEFAULT_SETTINGS_RAW.get("port", 5000))
DEFAULT_RECONNECT_MODE = str(_DEFAULT_SETTINGS_RAW.get("reconnect_mode", "block"))
DEFAULT_MAX_ATTEMPTS = int(_DEFAULT_SETTINGS_RAW.get("max_attempts", 5))
DEFAULT_BACKOFF_SECONDS = float(_DEFAULT_SETTINGS_RAW.get("backoff_seconds", 0.5))
DEFAULT_MAX_BACKOFF_SECONDS = float(_DEFAULT_SETTINGS_RAW.get("max_backoff_seconds", 10.0))
DEFAULT_LOG_LEVEL = str(_DEFAULT_SETTINGS_RAW.get("log_level", "INFO"))


def resolve_log_level(level: str | None = None) -> str:
    """Pick the log level from the argument, then ``KDBQ_LOG_LEVEL``, then the default.

    Example:
        ```python
        level = resolve_log_level(None)
        ```
    """
    chosen = (level or os.getenv(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    if chosen not in _LOG_LEVELS:
        raise SettingsError(f"Unknown log level: {chosen}")
    return chosen


@dataclass(slots=True)
class ClientSettings:
    """Connection target, reconnect policy and logging settings for a client.

    Example:
        ```python
        settings = ClientSettings(host="rdb.local", port=5011, reconnect_mode="retry")
        ```
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    reconnect_mode: str = DEFAULT_RECONNECT_MODE
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS
    max_backoff_seconds: float = DEFAULT_MAX_BACKOFF_SECONDS
    log_level: str | None = None
    config_path: str | None = None

    def __post_init__(self) -> None:
        """Validate settings after dataclass initialization.

        Example:
            ```python
            ClientSettings(reconnect_mode="block")
            ```
        """
        if self.reconnect_mode not in RECONNECT_MODES:
            raise SettingsError("reconnect_mode must be 'block', 'retry' or 'fail-fast'")
        if self.max_attempts < 1:
            raise SettingsError("'max_attempts' must be at least 1")
        if self.backoff_seconds < 0 or self.max_backoff_seconds < 0:
            raise SettingsError("backoff values must not be negative")
        try:
            self.remote_process()
        except ValueError as exc:
            raise SettingsError(str(exc)) from exc
        self.log_level = resolve_log_level(self.log_level)

    @classmethod
    def from_file(cls, config_path: str) -> "ClientSettings":
        """Create settings from a TOML file; missing keys use defaults.

        Example:
            ```python
            settings = ClientSettings.from_file("/etc/kdbq.toml")
            ```
        """
        raw = _read_settings_toml(Path(config_path))
        try:
            return cls(
                host=str(raw.get("host", DEFAULT_HOST)),
                port=int(raw.get("port", DEFAULT_PORT)),
                reconnect_mode=str(raw.get("reconnect_mode", DEFAULT_RECONNECT_MODE)),
                max_attempts=int(raw.get("max_attempts", DEFAULT_MAX_ATTEMPTS)),
                backoff_seconds=float(raw.get("backoff_seconds", DEFAULT_BACKOFF_SECONDS)),
                max_backoff_seconds=float(
                    raw.get("max_backoff_seconds", DEFAULT_MAX_BACKOFF_SECONDS)
                ),
                log_level=None if raw.get("log_level") is None else str(raw["log_level"]),
                config_path=config_path,
            )
        except SettingsError:
            raise
        except (TypeError, ValueError) as exc:
            raise SettingsError(f"Invalid value in {config_path}: {exc}") from exc

    def remote_process(self) -> RemoteProcess:
        """Return the configured target process.

        Example:
            ```python
            process = ClientSettings().remote_process()
            ```
        """
        return RemoteProcess(host=self.host, port=self.port)

    def reconnect_policy(self) -> ReconnectPolicy:
        """Return the configured reconnect policy.

        Example:
            ```python
            policy = ClientSettings(reconnect_mode="fail-fast").reconnect_policy()
            ```
        """
        return ReconnectPolicy(
            mode=self.reconnect_mode,
            max_attempts=self.max_attempts,
            backoff_seconds=self.backoff_seconds,
            max_backoff_seconds=self.max_backoff_seconds,
        )
