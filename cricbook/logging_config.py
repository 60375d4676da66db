"""
Logging configuration
"""
import logging
import sys

from cricbook.config import settings


def setup_logging(level: str = None):
    """
    Configure the root logger with a console handler.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR).
            Defaults to LOG_LEVEL from settings.
    """
    level = level or settings.LOG_LEVEL
    log_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates on reload
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Reduce noise from libraries
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging configured at level %s", level)
    return root_logger
