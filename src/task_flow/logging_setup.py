"""Logging configuration for Task Flow."""

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "task-flow.log"


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the console readable:
    - task_flow logs pass at the handler's level
    - captured Python warnings and third-party loggers only at ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "task_flow" or record.name.startswith("task_flow."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path,
    level: str | int = logging.INFO,
    console: bool = False,
) -> Path:
    """
    Configure logging with:
    - File handler at the configured level, always on
    - Console handler: filtered stderr output, only when ``console`` is set

    The terminal UI runs without the console handler so log lines never draw
    over the screen. Call this once, before the first log call.

    Returns:
        Path of the log file.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    if console:
        ch = logging.StreamHandler(sys.stderr)
        ch.setLevel(level)
        ch.setFormatter(fmt)
        ch.addFilter(_ConsoleNoiseFilter())
        root.addHandler(ch)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)
    return log_file
