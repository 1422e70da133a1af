"""Logger module."""

import logging
import os
import sys
from pathlib import Path

import colorlog

loggers: dict[str, logging.Logger] = {}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "bot.log"

log_levels = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Shared file handler, attached to every logger once configure_logging() ran
_file_handler: logging.FileHandler | None = None


def _parse_level(log_level: str) -> int:
    if log_level not in log_levels:
        err_msg = f"Invalid log level: {log_level}"
        raise ValueError(err_msg)
    return log_levels[log_level]


def get_logger(
    name: str,
    log_handler: str = "stdout",
    log_level: str | None = None,
    log_color: bool = False,
) -> logging.Logger:
    """Get logger.

    Args:
        name: The name of the logger.
        log_handler: The log handler type ('stdout' or 'none').
        log_level: The logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR',
            'CRITICAL'). Defaults to the LOG_LEVEL environment variable or INFO.
        log_color: Whether to use colored output.

    Returns:
        logging.Logger: Configured logger instance.

    Raises:
        ValueError: If invalid handler or log level is provided.
    """
    if name in loggers:
        return loggers[name]

    level = _parse_level(log_level or os.getenv("LOG_LEVEL", "INFO").upper())

    logger = logging.getLogger(name) if not log_color else colorlog.getLogger(name)

    handler: logging.Handler | None
    if log_handler == "stdout" and not log_color:
        handler = logging.StreamHandler(sys.stdout)
    elif log_handler == "stdout" and log_color:
        handler = colorlog.StreamHandler(sys.stdout)
    elif log_handler == "none":
        handler = None
    else:
        err_msg = f"Invalid handler: {log_handler}"
        raise ValueError(err_msg)

    logger.setLevel(level)

    if handler is not None:
        handler.setLevel(level)
        if not log_color:
            formatter = logging.Formatter(LOG_FORMAT)
        else:
            formatter = colorlog.ColoredFormatter(
                "%(log_color)s " + LOG_FORMAT,
                log_colors={
                    "DEBUG": "cyan",
                    "INFO": "green",
                    "WARNING": "yellow",
                    "ERROR": "red",
                    "CRITICAL": "red,bg_white",
                },
            )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if _file_handler is not None:
        logger.addHandler(_file_handler)

    loggers[name] = logger
    return logger


def configure_logging(log_path: str | Path, log_level: str = "INFO") -> Path:
    """Route every application logger to a log file and apply one level.

    Loggers created before this call are updated in place; loggers created
    afterwards pick up the file handler in get_logger().

    Args:
        log_path: Directory the log file is written to (created if missing).
        log_level: Level applied to all loggers and their handlers.

    Returns:
        Path: Full path of the log file.

    Raises:
        ValueError: If the log level is invalid.
    """
    global _file_handler  # noqa: PLW0603

    level = _parse_level(log_level.upper())

    log_dir = Path(log_path)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    if _file_handler is not None:
        for logger in loggers.values():
            logger.removeHandler(_file_handler)
        _file_handler.close()

    _file_handler = logging.FileHandler(log_file, encoding="utf-8")
    _file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    _file_handler.setLevel(level)

    for logger in loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
        logger.addHandler(_file_handler)

    return log_file
