"""Logging configuration for tdx-command.

Structured logging via loguru. Logging is disabled by default (library
behavior) and enabled when a client is opened with ``logging=True`` or a
``LogConfig`` instance.

Example:
    from tdx_command import LogConfig, TdxClient

    async with TdxClient(config, logging=LogConfig(level="DEBUG", console=True)) as tdx:
        await tdx.commands.rebuild_dataset_index("abc123")
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, TypeAlias

from loguru import logger

logger.disable("tdx_command")

LogLevel: TypeAlias = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"]

_CONTEXT_KEYS = ("component", "command", "resource_id", "goal")

# handlers added by setup_logging across all open clients
_active_handlers: set[int] = set()


def _format_context(record: Any) -> str:
    extra = record.get("extra", {})
    parts = [f"{k}={extra[k]}" for k in _CONTEXT_KEYS if k in extra]
    return f" [{' '.join(parts)}]" if parts else ""


CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>"
    "<dim>{extra[_ctx]}</dim> - "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line}{extra[_ctx]} - {message}"
)


@dataclass(frozen=True, slots=True)
class LogConfig:
    """Logging configuration for TdxClient.

    Attributes:
        level: Minimum log level for the console sink.
        file: Path to log file. ``None`` disables file output.
        console: Whether to log to stderr.
        rotation: File rotation policy (e.g., "50 MB", "1 day").
        retention: Number of old log files to keep.
    """

    level: LogLevel = "INFO"
    file: str | None = ".tdx/tdx-command.log"
    console: bool = False
    rotation: str = "50 MB"
    retention: int = 10


def setup_logging(config: LogConfig) -> list[int]:
    """Configure logging and return handler IDs for cleanup."""
    logger.enable("tdx_command")
    logger.configure(patcher=lambda r: r["extra"].update(_ctx=_format_context(r)))
    handler_ids: list[int] = []

    if config.console:
        hid = logger.add(
            sys.stderr,
            level=config.level,
            format=CONSOLE_FORMAT,
            colorize=True,
            filter="tdx_command",
        )
        handler_ids.append(hid)

    if config.file:
        Path(config.file).parent.mkdir(parents=True, exist_ok=True)
        hid = logger.add(
            config.file,
            level="DEBUG",
            format=FILE_FORMAT,
            filter="tdx_command",
            rotation=config.rotation,
            retention=config.retention,
            compression="zip",
            diagnose=False,
            enqueue=False,
        )
        handler_ids.append(hid)

    _active_handlers.update(handler_ids)
    return handler_ids


def teardown_logging(handler_ids: list[int]) -> None:
    """Remove handlers added by ``setup_logging``.

    Logging is disabled again once the last client that enabled it is torn down.
    """
    for hid in handler_ids:
        logger.remove(hid)
        _active_handlers.discard(hid)
    if not _active_handlers:
        logger.disable("tdx_command")
