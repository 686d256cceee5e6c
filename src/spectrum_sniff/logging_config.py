"""
Logging configuration for Spectrum Sniff.

Rich-formatted console logging, plus an optional plain-text log file.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure logging with rich handler for colored output.

    Args:
        verbose: Enable DEBUG level logging
        quiet: Suppress all but ERROR level logging
        log_file: Optional file path to write logs to

    Returns:
        Configured logger instance for spectrum_sniff
    """
    # The service is long-running, so imports are worth seeing by default
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

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
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True
    )

    logger = logging.getLogger("spectrum_sniff")
    logger.setLevel(level)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the ``spectrum_sniff`` namespace.

    Modules pass ``__name__``; bare names such as ``"watcher"`` are
    prefixed so that ``setup_logging`` levels and handlers apply to them.
    With no name the package root logger is returned.
    """
    if name is None:
        return logging.getLogger("spectrum_sniff")

    if not name.startswith("spectrum_sniff"):
        name = f"spectrum_sniff.{name}"

    return logging.getLogger(name)
