"""
Logging configuration for Live Measures.

The engine is embedded in a host process, so nothing here runs on import:
hosts call ``setup_logging`` once, library modules call ``get_logger``.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_ROOT = "live_measures"


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the ``live_measures`` logger with a rich handler on stderr.

    Args:
        verbose: Enable DEBUG level logging (per-refresh timings)
        quiet: Suppress all but ERROR level logging
        log_file: Optional file path to write logs to

    Returns:
        Configured logger instance for live_measures
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    console = Console(stderr=True)

    handlers: list[logging.Handler] = [
        RichHandler(
            console=console,
            rich_tracebacks=True,
            tracebacks_show_locals=verbose,
            markup=False,
            show_time=True,
            show_path=verbose,
        )
    ]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        handlers.append(file_handler)

    logger = logging.getLogger(_ROOT)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Module name (e.g., 'live_measures.measure.computer')
              If None, returns the root live_measures logger

    Returns:
        Logger instance
    """
    if name is None:
        return logging.getLogger(_ROOT)

    if not name.startswith(_ROOT):
        name = f"{_ROOT}.{name}"

    return logging.getLogger(name)
