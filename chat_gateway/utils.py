"""Logging helpers shared by the gateway entry points."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_FILENAME = "chat_gateway.log"


def setup_logging(log_dir: str, level: int = logging.INFO) -> Path:
    """Configure console and rotating file logging under ``log_dir``.

    Calling this more than once is harmless: handlers are only attached the
    first time a given log file is configured.
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = (log_path / LOG_FILENAME).resolve()

    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    already_configured = any(
        isinstance(handler, RotatingFileHandler) and Path(handler.baseFilename) == log_file
        for handler in root.handlers
    )
    if already_configured:
        return log_file

    file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    if not any(type(handler) is logging.StreamHandler for handler in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root.addHandler(console)

    logging.getLogger(__name__).debug("Logging to %s", log_file)
    return log_file
