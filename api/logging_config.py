"""Centralized logging configuration for the sampling API."""

import os
import sys
import logging
from pathlib import Path

from loguru import logger as loguru_logger

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))

_configured = False


def setup_logging():
    """Configure application-wide logging with file rotation.

    The API layer logs through stdlib ``logging``; domain modules log through
    loguru. Both end up on stdout and in rotating files under ``LOG_DIR``.
    """
    global _configured
    if _configured:
        return
    _configured = True

    from logging.handlers import RotatingFileHandler

    LOG_DIR.mkdir(exist_ok=True)
    level = getattr(logging, LOG_LEVEL, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    fmt = logging.Formatter(
        "[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(fmt)
    console.setLevel(level)
    root_logger.addHandler(console)

    file_handler = RotatingFileHandler(
        LOG_DIR / "sampling.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(fmt)
    root_logger.addHandler(file_handler)

    loguru_logger.remove()
    loguru_logger.add(sys.stdout, level=LOG_LEVEL)
    loguru_logger.add(
        LOG_DIR / "domain.log",
        level=LOG_LEVEL,
        rotation="10 MB",
        retention=5,
        encoding="utf-8",
    )

    # Quiet noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
