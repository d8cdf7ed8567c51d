"""Logging setup for Mnemo: console plus a rotating file under the data dir."""

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional


def setup_logging(level: Optional[str] = None, log_dir: Optional[Path] = None) -> logging.Logger:
    """Configure the ``mnemo`` logger.

    Args:
        level: DEBUG, INFO, WARNING or ERROR (default: ``MNEMO_LOG_LEVEL`` or INFO)
        log_dir: Directory for ``mnemo.log``; no file handler when None

    Returns:
        The configured package logger
    """
    level_name = (level or os.environ.get("MNEMO_LOG_LEVEL") or "INFO").upper()
    log_level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger("mnemo")
    logger.setLevel(log_level)
    logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir is not None:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            Path(log_dir) / "mnemo.log",
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
