# basket_compare/config/logging_config.py

"""Per-run logging for CLI searches and the API server.

Every launch writes one ``logs/run_YYYYMMDD_HHMMSS.log`` file.  The
``basket_compare`` logger tree always routes there; when the API is
served, uvicorn's own loggers are attached to the same file so request
lines sit next to the fetch races they triggered.
"""

import logging
import sys
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from basket_compare.config.settings import Settings

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(funcName)s:%(lineno)d | %(message)s"
)
_CONSOLE_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER = "basket_compare"


def _run_log_path(logs_dir: Path) -> Path:
    logs_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return logs_dir / f"run_{stamp}.log"


def _console_level() -> int:
    level = logging.getLevelName(Settings.LOG_LEVEL.upper())
    return level if isinstance(level, int) else logging.WARNING


def setup_logging(extra_loggers: Iterable[str] = ()) -> Path:
    """Attach the per-run file handler and a stderr handler.

    Args:
        extra_loggers: Third-party logger names (e.g. ``"uvicorn"``)
            that should also write to the run file.

    Returns:
        Path of this run's log file.  Repeated calls keep the handlers
        from the first call.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.DEBUG)

    existing = [
        h for h in root.handlers if isinstance(h, logging.FileHandler)
    ]
    if existing:
        log_file = Path(existing[0].baseFilename)
        file_handler: logging.Handler = existing[0]
    else:
        log_file = _run_log_path(Settings.LOGS_DIR)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
        )
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(_console_level())
        console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        root.addHandler(file_handler)
        root.addHandler(console)
        root.info("Logging initialised, log file: %s", log_file)

    for name in extra_loggers:
        other = logging.getLogger(name)
        if file_handler not in other.handlers:
            other.addHandler(file_handler)

    return log_file
