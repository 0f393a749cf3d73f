"""Process-wide logging: rotating log file plus console.

Log records carry a bracketed component tag in the message
(``[SESSION]``, ``[ROUTER]``, ``[FILTERS]``, ``[REMOTE]``, ``[CONFIG]``,
``[SIM_CAMERA]``) so one file can be grepped per component.
"""
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FILE_NAME = "splitviewer.log"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 5


def resolve_level(default=logging.INFO):
    name = os.environ.get("SPLITVIEWER_LOG_LEVEL", "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"SPLITVIEWER_LOG_LEVEL {name!r} is not a logging level")
    return level


def setup_logging(level=None, logs_dir=None):
    """Install file and console handlers on the root logger once.

    Returns the log file path, or None when handlers were already present.
    """
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return None

    if logs_dir is None:
        logs_dir = os.environ.get("SPLITVIEWER_LOG_DIR") or Path("Data") / "Logs"
    logs_dir = Path(logs_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / LOG_FILE_NAME

    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s")

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root_logger.setLevel(resolve_level() if level is None else level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)
    return log_path
