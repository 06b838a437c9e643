"""Logging setup for the API process."""

import logging
import sys
from pathlib import Path
from typing import Optional

from config import LOG_DIR, LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are only interesting when something goes wrong
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "urllib3")


def setup_logging(level: Optional[str] = None, log_dir: Optional[str] = None) -> None:
    """Configure the root logger.

    Call this once, before the first log line is written. Calling it again
    replaces the handlers instead of stacking duplicates.

    Args:
        level: Root log level name. Defaults to LOG_LEVEL.
        log_dir: Directory for taskmaster.log. Defaults to LOG_DIR; when empty
            only the console handler is installed.
    """
    level = (level or LOG_LEVEL).upper()
    log_dir = LOG_DIR if log_dir is None else log_dir

    root = logging.getLogger()
    root.setLevel(level)

    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(path / "taskmaster.log"), encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
