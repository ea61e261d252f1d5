"""Logging setup shared by the CLI, the HTTP service and worker processes."""

import os
import sys
import logging
from typing import Iterable, Optional

DEFAULT_LOGGER_NAME = "image-transcoder"

STRUCTURED_FORMAT = (
    "%(asctime)s | %(name)s | %(processName)s | %(levelname)-8s | "
    "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
)
SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Pillow plugins log every chunk they parse at DEBUG.
NOISY_LOGGERS = ("PIL", "multipart", "python_multipart")


def resolve_level(level: Optional[str] = None) -> int:
    """Map a level name, or ``LOG_LEVEL`` when none is given, to a logging level."""
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def _build_formatter(format_type: str) -> logging.Formatter:
    if os.getenv("LOG_FORMAT", format_type).lower() == "structured":
        return logging.Formatter(STRUCTURED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    return logging.Formatter(SIMPLE_FORMAT)


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: Optional[str] = None,
    format_type: str = "structured",
) -> logging.Logger:
    """
    Configure and return a stdout logger.

    Args:
        name: Logger name
        level: Level name; falls back to ``LOG_LEVEL`` and then INFO
        format_type: "structured" or "simple"; ``LOG_FORMAT`` overrides it

    Returns:
        The configured logger. Repeated calls reuse its single handler.
    """
    logger = logging.getLogger(name)
    logger.setLevel(resolve_level(level))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_build_formatter(format_type))
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Return a logger configured the same way as the package logger."""
    return setup_logger(name)


def silence_noisy_loggers(
    names: Iterable[str] = NOISY_LOGGERS, level: int = logging.WARNING
) -> None:
    """Raise the threshold of chatty third-party loggers."""
    for name in names:
        logging.getLogger(name).setLevel(level)


def configure_multiprocessing_logging() -> logging.Logger:
    """
    Configure a per-process logger inside a pool worker.

    Each worker gets its own ``image-transcoder.<process name>`` logger so
    lines from different processes can be told apart.
    """
    import multiprocessing

    process_name = multiprocessing.current_process().name
    silence_noisy_loggers()
    return setup_logger(f"{DEFAULT_LOGGER_NAME}.{process_name}")


logger = setup_logger()
