"""Logging setup for the orionkg service and tools."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.logging import RichHandler


# Dependencies that chatter at INFO while snapshots load or requests run.
_NOISY_LOGGERS: tuple[str, ...] = (
    "duckdb",
    "httpx",
    "multipart",
)


@dataclass
class LogConfig:
    """Where log records go and how loud each part of the engine is.

    ``component_levels`` overrides the root level for individual loggers,
    e.g. ``{"orionkg.knowledge_graph.store": "DEBUG"}`` to trace merges
    without turning on debug output everywhere.
    """

    level: str = "INFO"
    file_enabled: bool = True
    file_path: str = "~/.orionkg/logs/orionkg.log"
    file_max_bytes: int = 10485760  # 10MB
    file_backup_count: int = 5
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    use_rich_console: bool = True
    quiet_third_party: bool = True
    component_levels: dict[str, str] = field(default_factory=dict)


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def _file_handler(config: LogConfig, formatter: logging.Formatter) -> logging.Handler:
    log_path = Path(config.file_path).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_path,
        maxBytes=config.file_max_bytes,
        backupCount=config.file_backup_count,
    )
    handler.setFormatter(formatter)
    return handler


def _console_handler(config: LogConfig, formatter: logging.Formatter) -> logging.Handler:
    if config.use_rich_console:
        handler: logging.Handler = RichHandler(rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
    return handler


def setup_logging(config: LogConfig) -> None:
    """
    Replace the root handlers with a rotating file and a console handler.

    Args:
        config: Logging configuration
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(_level(config.level))
    root_logger.handlers.clear()

    formatter = logging.Formatter(config.format)
    if config.file_enabled:
        root_logger.addHandler(_file_handler(config, formatter))
    root_logger.addHandler(_console_handler(config, formatter))

    if config.quiet_third_party:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    for name, level in config.component_levels.items():
        logging.getLogger(name).setLevel(_level(level))


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name`` (typically ``__name__``)."""
    return logging.getLogger(name)
