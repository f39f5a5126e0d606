"""
Logging setup shared by the library and the command line tools.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    name: Optional[str] = None,
    level: str = "INFO",
    log_file: Optional[Path] = None,
    console: bool = True,
) -> logging.Logger:
    """
    Setup logging with a console handler and, optionally, a file handler.

    Args:
        name: Logger name. If None, configures the root logger.
        level: Logging level name (DEBUG, INFO, WARNING, ...).
        log_file: Path of a log file. If None, no file handler is added.
        console: Whether to log to stderr (stdout is left to the command results).

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)
    formatter = logging.Formatter(DEFAULT_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug(f"Logging initialized: level={level}, file={log_file}")

    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def format_elapsed(seconds: float) -> str:
    return f"{seconds:.3f} s ({seconds / 60.0:.1f} min)"


class LogContext:
    """
    Context manager logging the start, the end and the elapsed time of an operation.

    Example:
        >>> with LogContext("Epoch 1 of 10"):
        ...     trainer.train_epoch(examples)
    """

    def __init__(self, operation: str, logger: Optional[logging.Logger] = None):
        self.operation = operation
        self.logger = logger or get_logger(__name__)
        self.start_time = None

    @property
    def elapsed(self) -> float:
        return (datetime.now() - self.start_time).total_seconds()

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.info(f"{self.operation} - Started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.logger.info(f"{self.operation} - Completed in {format_elapsed(self.elapsed)}")
        else:
            self.logger.error(f"{self.operation} - Failed after {format_elapsed(self.elapsed)}: {exc_val}")

        return False
