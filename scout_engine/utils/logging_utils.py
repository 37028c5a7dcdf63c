from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

LOGGER_NAME = "scout_engine"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s"


def configure_logger(level: str = "INFO", log_dir: Optional[str] = None) -> logging.Logger:
    """
    Configure and return the package logger.

    Module loggers are created with ``logging.getLogger(__name__)`` and inherit these handlers.
    Calling this twice keeps the first configuration.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(Path(log_dir) / "scout.log")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def configure_from_settings(settings: Mapping[str, Any] | None) -> logging.Logger:
    options: Dict[str, Any] = dict((settings or {}).get("logging") or {})
    return configure_logger(str(options.get("level") or "INFO"), options.get("log_dir"))


__all__ = ["LOGGER_NAME", "configure_logger", "configure_from_settings"]
