"""
Logging setup for housekeeping runs.

Configures the ``housekeeper`` logger hierarchy with a size-rotated log
file, or stderr when no file is configured.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler

from housekeeper.config import LogConfig

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

ROOT_LOGGER = "housekeeper"


def configure_logging(config: LogConfig | None = None, verbose: bool = False) -> logging.Logger:
    """
    Configure package logging.

    Replaces handlers installed by an earlier call, so repeated runs in
    one process do not duplicate output.

    Args:
        config: Log settings (default: INFO to stderr)
        verbose: Force DEBUG level

    Returns:
        The configured package logger
    """
    config = config or LogConfig()
    logger = logging.getLogger(ROOT_LOGGER)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    else:
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else getattr(logging, config.level))
    return logger
