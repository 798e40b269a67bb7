"""Logging utilities for CPEShield."""

import logging
import sys
from pathlib import Path
from typing import Optional, Any
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


class CPEShieldLogger:
    """Named logger that renders through a rich console handler."""

    def __init__(self, name: str, level: int = logging.NOTSET) -> None:
        self.logger = logging.getLogger(name)
        if level != logging.NOTSET:
            self.logger.setLevel(level)
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        """Attach a single rich handler writing to stderr."""
        if any(isinstance(h, RichHandler) for h in self.logger.handlers):
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
        handler.setFormatter(logging.Formatter(fmt="%(name)s: %(message)s", datefmt="[%X]"))

        self.logger.addHandler(handler)
        self.logger.propagate = False

    def info(self, msg: str, **kwargs: Any) -> None:
        self.logger.info(msg, extra=kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self.logger.warning(msg, extra=kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self.logger.error(msg, extra=kwargs)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self.logger.debug(msg, extra=kwargs)

    def critical(self, msg: str, **kwargs: Any) -> None:
        self.logger.critical(msg, extra=kwargs)


def setup_logging(
    level: int = logging.WARNING,
    log_file: Optional[Path] = None,
    verbose: bool = False
) -> None:
    """Configure logging for a CPEShield run.

    Args:
        level: Logging level for CPEShield components
        log_file: Optional log file path
        verbose: Switch every component to debug level
    """
    if verbose:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
            *([logging.FileHandler(log_file)] if log_file else [])
        ]
    )

    for name in COMPONENT_LOGGERS:
        logging.getLogger(name).setLevel(level)


# Names handed to get_logger() by the library components.
COMPONENT_LOGGERS = (
    "MatchingEngine",
    "Aggregator",
    "VulnerabilityScanner",
    "OfflineVulnerabilityStore",
    "ConsoleFormatter",
    "JSONFormatter",
    "CLI",
)


def get_logger(name: str) -> CPEShieldLogger:
    """Get a CPEShield logger instance.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    return CPEShieldLogger(name)
