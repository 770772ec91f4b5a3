"""Configuration layering support.

Precedence (later overrides earlier): config file < environment variables
(``F007TH_PUSH_*``) < command-line flags.
"""

from __future__ import annotations

import os
from argparse import Namespace
from pathlib import Path
from typing import Any

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

from f007th_push import config as config_module
from f007th_push.config import PushConfig
from f007th_push.errors import ConfigurationError

ENV_PREFIX = "F007TH_PUSH_"
# Variables with the prefix that are not config values
_RESERVED_ENV = {"CONFIG_PATH", "LOG_LEVEL"}


def load_layered_config(
    config_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Load and merge configuration from the file, environment and CLI.

    A missing config file is not an error; a malformed one is.
    """
    result: dict[str, Any] = {}
    if config_path is not None and config_path.exists():
        result = _load_toml_file(config_path)

    env_overrides = _extract_env_overrides()
    if env_overrides:
        result = _deep_merge(result, env_overrides)

    if cli_overrides:
        result = _deep_merge(result, cli_overrides)

    return result


def cli_overrides_from_args(args: Namespace) -> dict[str, Any]:
    """Translate parsed command-line flags into a nested override dict."""
    server: dict[str, Any] = {}
    url = getattr(args, "send_to", None) or getattr(args, "url", None)
    if url:
        server["url"] = url
    if getattr(args, "server_type", None):
        server["type"] = args.server_type

    overrides: dict[str, Any] = {}
    if server:
        overrides["server"] = server
    publish: dict[str, Any] = {}
    if getattr(args, "all", False):
        publish["changes_only"] = False
    for name in ("payload_buffer_size", "response_buffer_size"):
        if getattr(args, name, None) is not None:
            publish[name] = getattr(args, name)
    if publish:
        overrides["publish"] = publish

    http: dict[str, Any] = {}
    for name in ("connect_timeout", "read_timeout"):
        if getattr(args, name, None) is not None:
            http[name] = getattr(args, name)
    if http:
        overrides["http"] = http

    logging_section: dict[str, Any] = {}
    if getattr(args, "log_file", None):
        logging_section["log_file"] = args.log_file
    if getattr(args, "log_level", None):
        logging_section["level"] = args.log_level
    if logging_section:
        overrides["logging"] = logging_section
    return overrides


def resolve_push_config(args: Namespace) -> PushConfig:
    """Build the effective configuration for a command invocation.

    An explicitly requested config file must exist; the default one is
    optional.
    """
    explicit = getattr(args, "config", None)
    config_path = config_module.resolve_config_path(explicit)
    if explicit is not None and not config_path.exists():
        raise ConfigurationError(f"Config not found at {config_path}")
    merged = load_layered_config(config_path, cli_overrides_from_args(args))
    return PushConfig.from_dict(merged)


def _load_toml_file(path: Path) -> dict[str, Any]:
    with path.open("rb") as handle:
        try:
            return tomllib.load(handle)  # type: ignore[no-any-return]
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"Malformed config file {path}: {exc}") from exc


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base, preferring override values."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _extract_env_overrides() -> dict[str, Any]:
    """Extract ``F007TH_PUSH_SECTION__KEY`` variables into a nested dict.

    Example:
        F007TH_PUSH_SERVER__URL=http://localhost:8086/write → {"server": {"url": ...}}
    """
    overrides: dict[str, Any] = {}

    for env_key, env_value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        suffix = env_key[len(ENV_PREFIX) :]
        if not suffix or suffix in _RESERVED_ENV:
            continue

        parts = suffix.lower().split("__")
        if len(parts) == 1:
            overrides[parts[0]] = _parse_env_value(env_value)
        elif len(parts) == 2:
            section, key = parts
            section_values = overrides.setdefault(section, {})
            if isinstance(section_values, dict):
                section_values[key] = _parse_env_value(env_value)

    return overrides


def _parse_env_value(raw: str) -> Any:
    """Parse an environment string into bool, int, float or str."""
    lower = raw.lower()
    if lower == "true":
        return True
    if lower == "false":
        return False
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        pass
    return raw


__all__ = ["ENV_PREFIX", "cli_overrides_from_args", "load_layered_config", "resolve_push_config"]
