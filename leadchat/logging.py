"""Logging setup for the lead research chat."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    app_name: str = "leadchat",
    *,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """Attach console (and optionally file) handlers to the root logger.

    Streamlit re-executes the script on every interaction, so this is a no-op
    once the root logger already has handlers.
    """
    root_logger = logging.getLogger()
    logger = logging.getLogger(app_name)
    if root_logger.handlers:
        return logger

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers)
    logger.info("Logging initialised (level=%s, file=%s)", logging.getLevelName(level), log_file or "-")
    return logger


__all__ = ["setup_logging", "LOG_FORMAT"]
