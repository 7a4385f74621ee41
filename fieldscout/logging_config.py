"""Centralized logging configuration for fieldscout."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


def setup_logging(
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
) -> logging.Logger:
    """
    Configure the 'fieldscout' logger hierarchy.

    Library modules log through logging.getLogger('fieldscout.<module>') and
    never install handlers themselves; entry points (the report CLI, a
    scouting app shell) call this once.

    Args:
        log_dir: Directory for log files (default: ./logs)
        level: Logging level (default: INFO)
        log_to_file: Whether to write a timestamped log file (default: True)
        log_to_console: Whether to log to stdout (default: True)

    Returns:
        Configured 'fieldscout' logger

    Example:
        from fieldscout.logging_config import setup_logging
        logger = setup_logging(log_to_file=False)
        logger.info("Validating qualification matches")
    """
    logger = logging.getLogger('fieldscout')
    logger.setLevel(level)

    # Re-running setup must not stack handlers
    logger.handlers = []

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    simple_formatter = logging.Formatter('%(levelname)s: %(message)s')

    if log_to_file:
        log_dir = Path(log_dir) if log_dir is not None else Path('logs')
        log_dir.mkdir(parents=True, exist_ok=True)

        log_file = log_dir / f'fieldscout_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(detailed_formatter)
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(simple_formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str = 'fieldscout') -> logging.Logger:
    """
    Get a logger in the fieldscout hierarchy.

    Short names are namespaced: get_logger('tracker') -> 'fieldscout.tracker'.
    """
    if name != 'fieldscout' and not name.startswith('fieldscout.'):
        name = f'fieldscout.{name}'
    return logging.getLogger(name)
