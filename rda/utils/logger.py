"""
Centralized logging configuration for RDA.

All loggers hang off the "rda" root: auction, custody, ledger, registry,
deployment, cli. Console output is colored; a plain-text file under the
log directory can be added for long-running sessions.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import colorlog

ROOT_LOGGER = "rda"
LOG_FILE = "rda.log"

CONSOLE_FORMAT = "%(log_color)s%(asctime)s [%(name)s] %(levelname)-8s%(reset)s %(message)s"
FILE_FORMAT = "%(asctime)s [%(name)s] %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


class RDALogger:
    """Owns the handlers of the "rda" logger tree"""

    _initialized = False
    log_file: Optional[Path] = None

    @classmethod
    def setup(
        cls,
        level: int = logging.INFO,
        log_dir: Optional[str] = None,
        log_to_file: bool = False,
    ):
        """
        (Re)configure logging.

        Handlers from an earlier call are closed and replaced, so the CLI
        can change verbosity or add a log file after module-level loggers
        were created.

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR)
            log_dir: Directory for the log file. If None, uses ./logs
            log_to_file: Whether to also write to <log_dir>/rda.log
        """
        root_logger = logging.getLogger(ROOT_LOGGER)
        root_logger.setLevel(level)
        for handler in list(root_logger.handlers):
            handler.close()
            root_logger.removeHandler(handler)

        console_handler = colorlog.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(
            colorlog.ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT, log_colors=LEVEL_COLORS)
        )
        root_logger.addHandler(console_handler)

        cls.log_file = None
        if log_to_file:
            directory = Path(log_dir) if log_dir else Path("logs")
            directory.mkdir(parents=True, exist_ok=True)
            cls.log_file = directory / LOG_FILE

            file_handler = logging.FileHandler(cls.log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
            root_logger.addHandler(file_handler)

        cls._initialized = True

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Get a logger for a specific subsystem.

        Args:
            name: Subsystem name (e.g., 'auction', 'ledger', 'custody')
        """
        if not cls._initialized:
            cls.setup()

        return logging.getLogger(f"{ROOT_LOGGER}.{name}")


# Convenience functions
def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific subsystem"""
    return RDALogger.get_logger(name)


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
    log_to_file: bool = False,
):
    """Setup logging configuration"""
    RDALogger.setup(level=level, log_dir=log_dir, log_to_file=log_to_file)
