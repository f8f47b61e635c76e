# lounge/utils/logger.py
"""
Logging setup for the lounge core.
Console output plus a rotating operator log (APP_LOG_DIR/APP_LOG_FILE).
Persistence failures never reach callers as exceptions; this log is where
the operator sees them. Messages carry a bracketed component tag, e.g.
"[Ledger]", "[EventLog]", "[Layout]".
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from lounge.config import Settings, settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))

_configured = False


def log_file_path(config: Settings = settings) -> str:
    """Relative APP_LOG_DIR values are resolved against the repository root."""
    log_dir = config.APP_LOG_DIR
    if not os.path.isabs(log_dir):
        log_dir = os.path.join(REPO_ROOT, log_dir)
    return os.path.join(log_dir, config.APP_LOG_FILE)


def configure_logging(config: Optional[Settings] = None) -> None:
    """Attach the console and operator-log handlers to the root logger once."""
    global _configured
    if _configured:
        return
    _configured = True
    config = config or settings
    level = config.LOG_LEVEL.upper()
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)

    path = log_file_path(config)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    operator_log = RotatingFileHandler(
        filename=path,
        maxBytes=config.APP_LOG_MAX_BYTES,
        backupCount=config.APP_LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    operator_log.setLevel(level)
    operator_log.setFormatter(fmt)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(console)
    root.addHandler(operator_log)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    configure_logging()
    return logging.getLogger(name)
