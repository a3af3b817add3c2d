"""
Root logging setup for the IRC relay.

One colorlog handler on stderr for everything, plus a small per-category
error tally that is reported when the process exits.
"""

import atexit
import logging
import os
import sys
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any

import colorlog

LOG_FORMAT = "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "magenta",
}


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    message: str
    context: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


class ErrorAggregator:
    """Keeps the most recent errors per category.

    Categories are the names returned by ``relaybot.errors.classify_error``
    (``transport``, ``backend`` ...). Only the last ``keep`` records of each
    category are retained, but the total count keeps growing.
    """

    def __init__(self, keep: int = 1000):
        self.keep = keep
        self._records: dict[str, deque[ErrorRecord]] = {}
        self._totals: dict[str, int] = {}
        self._lock = threading.Lock()
        self.started = time.time()

    def record_error(
        self, error_type: str, message: str, context: dict[str, Any] | None = None
    ) -> None:
        with self._lock:
            bucket = self._records.setdefault(error_type, deque(maxlen=self.keep))
            bucket.append(ErrorRecord(message, dict(context or {})))
            self._totals[error_type] = self._totals.get(error_type, 0) + 1

    def recent(self, error_type: str) -> list[ErrorRecord]:
        with self._lock:
            return list(self._records.get(error_type, ()))

    def get_error_summary(self) -> dict[str, dict[str, Any]]:
        """Per category: ``total_count``, ``rate_per_hour`` and ``last`` record."""
        with self._lock:
            hours = max((time.time() - self.started) / 3600, 1)
            return {
                error_type: {
                    "total_count": total,
                    "rate_per_hour": total / hours,
                    "last": self._records[error_type][-1],
                }
                for error_type, total in self._totals.items()
            }

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._totals.clear()

    def log_summary_report(self) -> None:
        summary = self.get_error_summary()
        if not summary:
            logging.info("📊 No errors recorded this run")
            return
        logging.warning(f"📊 Error summary ({len(summary)} categories)")
        for error_type, stats in sorted(summary.items()):
            logging.warning(
                f"  {error_type}: {stats['total_count']} total "
                f"({stats['rate_per_hour']:.1f}/h), last: {stats['last'].message}"
            )


error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: Exception | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log ``[CATEGORY] message | Exception: ... | Context: k=v`` and tally it."""
    parts = [f"[{error_type.upper()}] {message}"]
    if exception is not None:
        parts.append(f"Exception: {type(exception).__name__}: {exception}")
    if context:
        parts.append("Context: " + " ".join(f"{k}={v}" for k, v in context.items()))
    logging.log(level, " | ".join(parts))
    error_aggregator.record_error(error_type, message, context)


def debug_enabled() -> bool:
    return os.environ.get("DEBUG", "").lower() in ("true", "1", "yes")


def build_formatter() -> colorlog.ColoredFormatter:
    return colorlog.ColoredFormatter(
        LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        log_colors=LEVEL_COLORS,
        secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
        reset=True,
    )


class LoggerConfigurator:
    """Installs the colored stderr handler on the root logger.

    The level is DEBUG when the ``DEBUG`` environment variable is truthy,
    INFO otherwise, unless given explicitly.
    """

    def __init__(self, level: int | None = None):
        self.level = level

    def configure(self) -> logging.Logger:
        level = self.level
        if level is None:
            level = logging.DEBUG if debug_enabled() else logging.INFO

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(build_formatter())

        root = logging.getLogger()
        root.addHandler(handler)
        root.setLevel(level)

        # aiohttp client chatter is only interesting when debugging the HTTP layer
        logging.getLogger("aiohttp").setLevel(logging.WARNING)

        atexit.register(error_aggregator.log_summary_report)
        return root
