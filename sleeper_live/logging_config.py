"""Centralized logging configuration for the live matchup tracker."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_LOGGER = 'sleeper_live'

# Third-party loggers that log every request at INFO
NOISY_LOGGERS = ('httpx', 'httpcore')


def setup_logging(
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    log_to_file: bool = False,
    log_to_console: bool = True,
    http_level: int = logging.WARNING,
) -> logging.Logger:
    """
    Configure logging for a tracker process.

    The poll loop runs indefinitely, so file logging is opt-in and
    HTTP client chatter is held at http_level.

    Args:
        log_dir: Directory for log files (default: ./logs)
        level: Logging level for tracker modules (default: INFO)
        log_to_file: Whether to log to a timestamped file (default: False)
        log_to_console: Whether to log to stderr (default: True)
        http_level: Level for httpx/httpcore loggers (default: WARNING)

    Returns:
        The configured 'sleeper_live' logger

    Example:
        from sleeper_live.logging_config import setup_logging
        logger = setup_logging(level=logging.DEBUG)
        logger.info("Starting live updates")
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers = []
    logger.propagate = False

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    console_formatter = logging.Formatter(
        '%(asctime)s %(levelname)s: %(message)s',
        datefmt='%H:%M:%S',
    )

    if log_to_file:
        log_dir = log_dir or Path('logs')
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f'tracker_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(detailed_formatter)
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(http_level)

    return logger


def get_logger(name: str = '') -> logging.Logger:
    """
    Get a tracker logger, e.g. get_logger('poller') -> 'sleeper_live.poller'.

    If setup_logging() hasn't been called, records go to the root logger.
    """
    return logging.getLogger(f'{ROOT_LOGGER}.{name}' if name else ROOT_LOGGER)
