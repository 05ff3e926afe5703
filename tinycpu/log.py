"""
Logging setup for the tinykit command line.

Library modules only ever call logging.getLogger(__name__); handlers
are installed here, once, by the CLI (or by a host application that
wants the same console format).
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

from . import config

LOGGER_NAME = "tinycpu"


def setup_logging(
    console_level: int = config.LOG_LEVEL,
    log_file: Optional[Union[str, Path]] = None,
    file_level: int = logging.DEBUG,
) -> logging.Logger:
    """Configure and return the package logger.

    Console output goes to stderr through rich, so stdout stays clean for
    program output. When log_file is given, everything at file_level and
    above is also written there in a plain pipe-separated format.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(min(console_level, file_level) if log_file else console_level)
    logger.propagate = False

    # ── Console handler ──
    ch = RichHandler(
        console=Console(stderr=True),
        level=console_level,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    ch.setLevel(console_level)
    logger.addHandler(ch)

    # ── File handler: captures everything ──
    if log_file:
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(config.LOG_FILE_FORMAT, datefmt=config.LOG_DATE_FORMAT))
        logger.addHandler(fh)
        logger.debug("Log file: %s", log_file)

    return logger
