"""Logging utilities for DepExtract."""

import logging
import sys
from pathlib import Path
from typing import Any, Optional
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


LOGGER_NAMESPACE = "dep_extract"


class DepExtractLogger:
    """Logger wrapper with rich console output."""

    def __init__(self, name: str, level: int = logging.INFO) -> None:
        self.logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
        self._setup_handlers(level)

    def _setup_handlers(self, level: int) -> None:
        """Attach the shared rich handler to the package logger once."""
        root = logging.getLogger(LOGGER_NAMESPACE)
        if any(isinstance(handler, RichHandler) for handler in root.handlers):
            return

        console = Console(stderr=True, theme=Theme({
            "info": "cyan",
            "warning": "yellow",
            "error": "red",
            "critical": "red bold",
            "debug": "dim",
        }))

        handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            markup=False,
        )

        formatter = logging.Formatter(
            fmt="%(name)s: %(message)s",
            datefmt="[%X]"
        )
        handler.setFormatter(formatter)

        root.addHandler(handler)
        root.setLevel(level)
        root.propagate = False

    def info(self, msg: str, **kwargs: Any) -> None:
        """Log info message."""
        self.logger.info(msg, extra=kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        """Log warning message."""
        self.logger.warning(msg, extra=kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        """Log error message."""
        self.logger.error(msg, extra=kwargs)

    def debug(self, msg: str, **kwargs: Any) -> None:
        """Log debug message."""
        self.logger.debug(msg, extra=kwargs)


def setup_logging(
    level: int = logging.WARNING,
    log_file: Optional[Path] = None,
    verbose: bool = False
) -> None:
    """Setup logging configuration for DepExtract.

    Args:
        level: Logging level
        log_file: Optional log file path
        verbose: Enable verbose logging
    """
    if verbose:
        level = logging.DEBUG

    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    package_logger.setLevel(level)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))
        package_logger.addHandler(file_handler)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)]
    )

    # Set specific logger levels
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str) -> DepExtractLogger:
    """Get a DepExtract logger instance.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    return DepExtractLogger(name)
