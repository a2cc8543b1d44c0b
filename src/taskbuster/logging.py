"""Logging configuration using loguru."""

import sys
from pathlib import Path

from loguru import logger
from loguru._logger import Logger as LoguruLogger

from taskbuster.config import settings

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
_FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
    "{extra[name]}:{function}:{line} - {message}"
)


def configure_sinks(log_dir: str, level: str) -> Path:
    """
    Replace loguru's sinks with the service's console and file sinks.

    Args:
        log_dir: Directory receiving ``taskbuster.log`` and ``errors.log``
        level: Minimum level for the console sink

    Returns:
        The resolved log directory
    """
    logger.remove()

    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    logger.configure(extra={"name": "taskbuster"})
    logger.add(sys.stderr, format=_CONSOLE_FORMAT, level=level, colorize=True)

    # Operators read upstream failures from here; callers never see them
    logger.add(
        directory / "taskbuster.log",
        format=_FILE_FORMAT,
        level="DEBUG",
        rotation="10 MB",
        retention="7 days",
        compression="zip",
    )
    logger.add(
        directory / "errors.log",
        format=_FILE_FORMAT,
        level="ERROR",
        rotation="10 MB",
        retention="30 days",
        compression="zip",
    )
    return directory


def get_logger(name: str) -> LoguruLogger:
    """
    Get a logger bound to a module name.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured logger instance
    """
    configure_sinks(settings.log_dir, settings.log_level)
    return logger.bind(name=name)  # type: ignore[return-value]
