"""Per-run log files for CLI invocations.

Each run writes a ``Start`` line, whatever the package loggers emit, and an
``End`` line with the duration and the number of warnings and errors logged.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import os
from pathlib import Path
import re
import time

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
PACKAGE_LOGGER = "gamma_analytics"

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_-]+")


class _LevelCounter(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.counts: Counter[str] = Counter()

    def emit(self, record: logging.LogRecord) -> None:
        self.counts[record.levelname] += 1


@dataclass
class RunLog:
    command: str
    path: Path
    handler: logging.FileHandler
    counter: _LevelCounter
    started: float = field(default_factory=time.perf_counter)

    @property
    def warnings(self) -> int:
        return self.counter.counts["WARNING"]

    @property
    def errors(self) -> int:
        return self.counter.counts["ERROR"] + self.counter.counts["CRITICAL"]


def run_log_path(log_dir: Path, command: str, *, now: datetime | None = None) -> Path:
    """``<log_dir>/<YYYY-MM-DD>/<command>_<timestamp>_<pid>.log`` (UTC)."""
    stamp = now or datetime.now(timezone.utc)
    name = _UNSAFE_RE.sub("_", command.strip()).strip("_") or PACKAGE_LOGGER
    return log_dir / stamp.strftime("%Y-%m-%d") / f"{name}_{stamp.strftime('%Y%m%dT%H%M%SZ')}_{os.getpid()}.log"


def _detach(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if isinstance(handler, (logging.FileHandler, _LevelCounter)):
            logger.removeHandler(handler)
            handler.close()


def start_run_log(
    log_dir: Path,
    command: str,
    *,
    level: int = logging.INFO,
    log_path: Path | None = None,
) -> RunLog | None:
    """Route the package logger into a run log; ``None`` when the location is unwritable."""
    path = log_path or run_log_path(log_dir, command)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    except OSError:
        return None
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger = logging.getLogger(PACKAGE_LOGGER)
    _detach(logger)
    logger.setLevel(level)
    logger.propagate = False
    counter = _LevelCounter()
    logger.addHandler(handler)
    logger.addHandler(counter)

    logger.info("Start %s pid=%d", command, os.getpid())
    return RunLog(command=command, path=path, handler=handler, counter=counter)


def end_run_log(run: RunLog) -> None:
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.info(
        "End %s duration=%.2fs warnings=%d errors=%d",
        run.command,
        time.perf_counter() - run.started,
        run.warnings,
        run.errors,
    )
    for handler in (run.handler, run.counter):
        logger.removeHandler(handler)
        handler.close()


__all__ = ["LOG_FORMAT", "PACKAGE_LOGGER", "RunLog", "end_run_log", "run_log_path", "start_run_log"]
