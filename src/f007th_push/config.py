"""Configuration loading and persistence helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomli_w  # type: ignore[import]

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

from f007th_push.errors import ConfigurationError
from f007th_push.publisher import PAYLOAD_BUFFER_SIZE, RESPONSE_BUFFER_SIZE
from f007th_push.sinks import SinkKind, SinkTarget
from f007th_push.transport import CONNECT_TIMEOUT_S, READ_TIMEOUT_S

CONFIG_VERSION = 1
CONFIG_ENV_VAR = "F007TH_PUSH_CONFIG_PATH"
CONFIG_DIR_NAME = "f007th-push"
CONFIG_FILENAME = "config.toml"
DEFAULT_LOG_FILENAME = "f007th-send.log"


def _xdg_path(env_var: str, default: Path) -> Path:
    value = os.environ.get(env_var)
    if value:
        return Path(value).expanduser()
    return default


def get_config_dir() -> Path:
    """Return the directory containing configuration files."""
    default = Path.home() / ".config"
    return _xdg_path("XDG_CONFIG_HOME", default) / CONFIG_DIR_NAME


def get_data_dir() -> Path:
    """Return the directory for runtime data/log files."""
    default = Path.home() / ".local" / "share"
    return _xdg_path("XDG_DATA_HOME", default) / CONFIG_DIR_NAME


def get_logs_dir() -> Path:
    return get_data_dir() / "logs"


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Resolve the configuration file path, honouring overrides."""
    if path is not None:
        return Path(path).expanduser()
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / CONFIG_FILENAME


@dataclass(slots=True)
class PushConfig:
    """Target endpoint, publish policy, HTTP timeouts and logging options."""

    url: str | None = None
    server_type: SinkKind = SinkKind.REST
    changes_only: bool = True
    payload_buffer_size: int = PAYLOAD_BUFFER_SIZE
    response_buffer_size: int = RESPONSE_BUFFER_SIZE
    connect_timeout: float | None = CONNECT_TIMEOUT_S
    read_timeout: float | None = READ_TIMEOUT_S
    log_file: str | None = None
    log_level: str | None = None

    def target(self) -> SinkTarget:
        """Return the validated sink target."""
        return SinkTarget.create(self.url, self.server_type)

    def validate(self) -> None:
        """Raise ConfigurationError if any option is unusable."""
        self.target()
        if self.payload_buffer_size <= 0:
            raise ConfigurationError(
                f"Invalid payload buffer size {self.payload_buffer_size}; must be positive"
            )
        if self.response_buffer_size < 0:
            raise ConfigurationError(
                f"Invalid response buffer size {self.response_buffer_size}; must not be negative"
            )
        for name in ("connect_timeout", "read_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ConfigurationError(f"Invalid {name.replace('_', ' ')} {value}; must be positive")

    def to_dict(self) -> dict[str, Any]:
        """Convert the configuration to a TOML-serialisable dictionary.

        A disabled timeout is written as 0.
        """
        return {
            "version": CONFIG_VERSION,
            "server": _drop_none(
                {
                    "url": self.url,
                    "type": self.server_type.value,
                }
            ),
            "publish": {
                "changes_only": self.changes_only,
                "payload_buffer_size": self.payload_buffer_size,
                "response_buffer_size": self.response_buffer_size,
            },
            "http": {
                "connect_timeout": self.connect_timeout or 0,
                "read_timeout": self.read_timeout or 0,
            },
            "logging": _drop_none(
                {
                    "log_file": self.log_file,
                    "level": self.log_level,
                }
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PushConfig:
        """Construct from a dictionary (typically parsed from TOML)."""
        version = data.get("version", CONFIG_VERSION)
        if version != CONFIG_VERSION:
            raise ConfigurationError(f"Unsupported config version: {version}")

        server = data.get("server", {})
        publish = data.get("publish", {})
        http = data.get("http", {})
        logging_section = data.get("logging", {})

        return cls(
            url=_optional_str(server.get("url")),
            server_type=SinkKind.parse(server.get("type", SinkKind.REST.value)),
            changes_only=_as_bool(publish.get("changes_only", True), "changes_only"),
            payload_buffer_size=_as_int(
                publish.get("payload_buffer_size", PAYLOAD_BUFFER_SIZE), "payload_buffer_size"
            ),
            response_buffer_size=_as_int(
                publish.get("response_buffer_size", RESPONSE_BUFFER_SIZE), "response_buffer_size"
            ),
            connect_timeout=_as_timeout(http.get("connect_timeout", CONNECT_TIMEOUT_S), "connect_timeout"),
            read_timeout=_as_timeout(http.get("read_timeout", READ_TIMEOUT_S), "read_timeout"),
            log_file=_optional_str(logging_section.get("log_file")),
            log_level=_optional_str(logging_section.get("level")),
        )


def _drop_none(mapping: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in mapping.items() if value is not None}


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "yes", "1", "false", "no", "0"):
        return value.strip().lower() in ("true", "yes", "1")
    raise ConfigurationError(f"Invalid boolean for {name}: {value!r}")


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid number for {name}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid number for {name}: {value!r}") from exc


def _as_timeout(value: Any, name: str) -> float | None:
    """Parse a timeout in seconds; 0 or empty disables it."""
    if value in (None, ""):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid number for {name}: {value!r}") from exc
    if seconds < 0:
        raise ConfigurationError(f"Invalid {name.replace('_', ' ')} {value}; must not be negative")
    return seconds or None


def load_config(path: str | Path | None = None) -> PushConfig:
    """Load persisted configuration."""
    config_path = resolve_config_path(path)
    with config_path.open("rb") as handle:
        try:
            data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"Malformed config file {config_path}: {exc}") from exc
    return PushConfig.from_dict(data)


def save_config(config: PushConfig, path: str | Path | None = None) -> Path:
    """Persist configuration to disk and return the file path."""
    config_path = resolve_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    toml_text = tomli_w.dumps(config.to_dict())
    config_path.write_text(toml_text, encoding="utf-8")
    return config_path


def config_summary(config: PushConfig) -> str:
    """Generate a human-readable summary of key settings."""
    mode = "changed and valid data only" if config.changes_only else "all data"
    if config.connect_timeout is None and config.read_timeout is None:
        timeouts = "disabled"
    else:
        timeouts = f"connect={config.connect_timeout or '-'}s read={config.read_timeout or '-'}s"
    return (
        f"  Server   : {config.url or 'not set'} ({config.server_type.value})\n"
        f"  Publish  : {mode}\n"
        f"  Buffers  : payload={config.payload_buffer_size} B response={config.response_buffer_size} B\n"
        f"  Timeouts : {timeouts}\n"
        f"  Log file : {config.log_file or get_logs_dir() / DEFAULT_LOG_FILENAME}"
    )


__all__ = [
    "CONFIG_DIR_NAME",
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAME",
    "CONFIG_VERSION",
    "DEFAULT_LOG_FILENAME",
    "PushConfig",
    "config_summary",
    "get_config_dir",
    "get_data_dir",
    "get_logs_dir",
    "load_config",
    "resolve_config_path",
    "save_config",
]
