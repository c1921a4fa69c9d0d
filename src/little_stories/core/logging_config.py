"""Centralized logging configuration. Logs go to stderr."""

import logging
import sys
from datetime import UTC, datetime

LOG_FORMAT = "%(asctime)s.%(msecs)03dZ [%(levelname)s] %(name)s: %(message)s"
DATE_FMT = "%Y-%m-%dT%H:%M:%S"


class UTCTimeFormatter(logging.Formatter):
    """Use UTC for log timestamps."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        ct = datetime.fromtimestamp(record.created, tz=UTC)
        return ct.strftime(datefmt or self.default_time_format)


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger. Call once at startup."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(UTCTimeFormatter(LOG_FORMAT, datefmt=DATE_FMT))
        root.addHandler(handler)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
