# src/matchday_ops/logging_setup.py

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Persistence adapters log a line per schema check and batch; keep them off the console.
QUIET_LOGGERS = (
    "matchday_ops.tasks.task_store",
    "matchday_ops.directory.club_store",
    "matchday_ops.audit.audit_log",
)


class _ConsoleFilter(logging.Filter):
    """
    Console view of the log stream:
    - matchday_ops records pass, except the quiet adapters below WARNING
    - everything else (py.warnings included) only at ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith("matchday_ops."):
            return record.levelno >= logging.ERROR
        if name.startswith(QUIET_LOGGERS):
            return record.levelno >= logging.WARNING
        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/matchday",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = 2_000_000,
    backups: int = 3,
) -> Path:
    """
    Console gets short filtered lines on stderr (the prompt lives on stdout);
    <log_dir>/matchday.log gets everything, rotated.

    Call once at startup. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "matchday.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(message)s", datefmt="%H:%M:%S"))
    console.addFilter(_ConsoleFilter())
    root.addHandler(console)

    file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backups, encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
