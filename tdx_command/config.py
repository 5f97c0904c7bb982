"""TOML-based client configuration.

Loads ~/.tdx/defaults.toml (global) and tdx.toml (project), merges them,
applies ``TDX_*`` environment overrides and validates the result into a
``TdxConfig``.

Example tdx.toml::

    command_host = "https://cmd.tdx.example.com"
    query_host = "https://q.tdx.example.com"
    poll_interval = 1.0
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, TypeAlias

from tdx_command.constants import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    WAIT_INDEFINITELY,
)
from tdx_command.errors import ConfigError

RawConfig: TypeAlias = dict[str, Any]

GLOBAL_CONFIG_PATH = Path.home() / ".tdx" / "defaults.toml"
PROJECT_CONFIG_NAME = "tdx.toml"

_ENV_OVERRIDES: dict[str, tuple[str, type]] = {
    "TDX_COMMAND_HOST": ("command_host", str),
    "TDX_QUERY_HOST": ("query_host", str),
    "TDX_TOKEN": ("token", str),
    "TDX_REQUEST_TIMEOUT": ("request_timeout", float),
    "TDX_POLL_INTERVAL": ("poll_interval", float),
    "TDX_DEFAULT_TIMEOUT": ("default_timeout", float),
}


@dataclass(frozen=True, slots=True)
class TdxConfig:
    """Immutable client configuration.

    Args:
        command_host: Base URL of the command service.
        query_host: Base URL of the query service.
        token: Optional bearer token sent with every request.
        request_timeout: Per-request HTTP timeout in seconds.
        poll_interval: Fixed delay between poll ticks in seconds.
        default_timeout: Convergence budget used when an operation does not
            specify one. ``WAIT_INDEFINITELY`` waits forever.
    """

    command_host: str
    query_host: str
    token: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    default_timeout: float = WAIT_INDEFINITELY

    def __post_init__(self) -> None:
        _validate(self)


def validate_timeout(timeout: float, key: str = "timeout") -> float:
    """Accept a non-negative duration or the ``WAIT_INDEFINITELY`` sentinel."""
    if timeout == WAIT_INDEFINITELY or timeout >= 0:
        return timeout
    raise ConfigError(key, timeout, f"must be >= 0 or WAIT_INDEFINITELY ({WAIT_INDEFINITELY})")


def _validate(config: TdxConfig) -> None:
    if not config.command_host:
        raise ConfigError("command_host", config.command_host, "must not be empty")
    if not config.query_host:
        raise ConfigError("query_host", config.query_host, "must not be empty")
    if config.request_timeout <= 0:
        raise ConfigError("request_timeout", config.request_timeout, "must be > 0 (seconds)")
    if config.poll_interval <= 0:
        raise ConfigError("poll_interval", config.poll_interval, "must be > 0 (seconds)")
    validate_timeout(config.default_timeout, "default_timeout")


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    with path.open("rb") as f:
        return tomllib.load(f)


def _env_overrides(environ: Mapping[str, str]) -> RawConfig:
    overrides: RawConfig = {}
    for var, (key, cast) in _ENV_OVERRIDES.items():
        if (value := environ.get(var)) is None:
            continue
        try:
            overrides[key] = cast(value)
        except ValueError as e:
            raise ConfigError(var, value, f"expected {cast.__name__}") from e
    return overrides


def load_raw_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> RawConfig:
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    project_path = (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME
    return _deep_merge(global_cfg, _read_toml(project_path))


def load_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> TdxConfig:
    """Resolve a ``TdxConfig`` from TOML files, environment and keyword overrides.

    Precedence, lowest first: global file, project file, ``TDX_*`` variables,
    keyword arguments.

    Raises:
        ConfigError: If a required host is missing or a value is out of range.
    """
    raw = load_raw_config(project_dir=project_dir, global_path=global_path)
    raw = _deep_merge(raw, _env_overrides(os.environ if environ is None else environ))
    raw = _deep_merge(raw, overrides)

    known = {f.name for f in fields(TdxConfig)}
    if unknown := sorted(set(raw) - known):
        raise ConfigError(unknown[0], raw[unknown[0]], f"unknown key. Valid: {', '.join(sorted(known))}")

    for required in ("command_host", "query_host"):
        if not raw.get(required):
            raise ConfigError(required, raw.get(required), "must be set in tdx.toml or the environment")

    return TdxConfig(**raw)
