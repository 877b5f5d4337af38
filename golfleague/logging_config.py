"""Logging setup for the league CLI and scripts.

Every module logs under the ``golfleague`` namespace (``golfleague.storage``,
``golfleague.attestation``, ...), so configuring that one logger controls the
whole package. Library code never configures handlers itself.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

PACKAGE_LOGGER = 'golfleague'

CONSOLE_FORMAT = '%(levelname)s: %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def level_for_verbosity(verbosity: int) -> int:
    """Map a count of -v flags to a level: none -> WARNING, -v -> INFO, -vv -> DEBUG."""
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def log_file_path(log_dir: Path, prefix: str = 'golfleague') -> Path:
    """Timestamped log file inside log_dir, e.g. logs/golfleague_20240501_120000.log."""
    return log_dir / f'{prefix}_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    log_to_file: bool = True,
    log_to_console: bool = True,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Calling it again replaces the handlers from the previous call, so a
    script can switch level or destination without duplicate output.

    Args:
        level: Logging level (default: INFO)
        log_dir: Directory for log files (default: ./logs)
        log_to_file: Write a timestamped log file with source locations
        log_to_console: Write short messages to the console
        stream: Console stream (default: stdout)

    Returns:
        Configured 'golfleague' logger

    Example:
        from golfleague.logging_config import setup_logging
        logger = setup_logging(log_to_file=False)
        logger.info("Recomputing May standings")
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_to_file:
        log_dir = Path(log_dir) if log_dir is not None else Path('logs')
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path(log_dir), encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(stream or sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console_handler)

    return logger
