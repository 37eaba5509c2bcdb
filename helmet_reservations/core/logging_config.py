"""
Logging setup shared by the API process and the scanner CLI.
"""
from __future__ import annotations
import logging
import logging.handlers

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False

def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """
    Install a console handler and, when log_file is given, a rotating file
    handler on the root logger. Calling it twice is harmless.
    """
    global _configured
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if _configured:
        return

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root_logger.addHandler(console)

    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # uvicorn access lines are noisy next to our own request logs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    _configured = True
