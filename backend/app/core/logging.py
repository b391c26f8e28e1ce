"""
Logging setup driven by application settings
"""

import logging
import logging.handlers
import os

from ..config import settings

_configured = False


def setup_logging() -> None:
    """
    Configure the root logger from settings.

    Safe to call more than once; handlers are only attached the first time.
    """
    global _configured
    if _configured:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level.upper())
    formatter = logging.Formatter(settings.log_format, datefmt="%Y-%m-%d %H:%M:%S")

    if settings.log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if settings.log_to_file:
        log_dir = os.path.dirname(settings.log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            settings.log_file_path,
            maxBytes=settings.log_max_size_mb * 1024 * 1024,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Minimal verbosity keeps SQLAlchemy and uvicorn access chatter out of the logs
    if settings.log_verbosity != "full":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a module logger"""
    return logging.getLogger(name)
