import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from habitloop.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logger(log_file: Optional[str] = None, level: Optional[str] = None,
                 max_bytes: int = 10_000_000, backup_count: int = 5) -> logging.Logger:
    """Configures the root logger once; calling it again does not stack handlers."""
    logger = logging.getLogger()
    logger.setLevel((level or settings.LOG_LEVEL).upper())
    if getattr(logger, "_habitloop_configured", False):
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    log_file = log_file or settings.LOG_FILE
    if log_file:
        Path(log_file).parent.mkdir(exist_ok=True, parents=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger._habitloop_configured = True
    return logger
