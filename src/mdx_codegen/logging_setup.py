"""Central logging setup for the project."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

LOGGER_NAME = "mdx_codegen"
SUCCESS = 25
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"

logging.addLevelName(SUCCESS, "SUCCESS")

_THEME = Theme(
    {
        "logging.level.info": "cyan",
        "logging.level.success": "bold green",
        "logging.level.warning": "yellow",
        "logging.level.error": "bold red",
    }
)


def get_logger() -> logging.Logger:
    """Return the package logger without touching its handlers."""
    return logging.getLogger(LOGGER_NAME)


def log_success(log: logging.Logger, message: str, *args: object) -> None:
    """Log ``message`` at the SUCCESS level."""
    log.log(SUCCESS, message, *args)


def configure_logging(
    log_file: Path | None = None,
    level: int = logging.INFO,
    console: Console | None = None,
) -> logging.Logger:
    """
    Configure the package logger for console and append-only file output.

    Args:
        log_file: File that receives every record in append mode. Parent
            directories are created. ``None`` disables the file sink.
        level: Minimum level for both sinks.
        console: Rich console for the console sink (defaults to stderr).

    Returns:
        The configured package logger.
    """
    logger = get_logger()
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)
    logger.propagate = False

    console_handler = RichHandler(
        console=console or Console(stderr=True, theme=_THEME),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        log_time_format=f"[{DATE_FORMAT}]",
    )
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger
