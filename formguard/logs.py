"""Logging setup for host applications.

formguard modules only emit DEBUG records on their own ``formguard.*`` loggers
and never configure handlers themselves. Hosts that want to see them call
``setup_logging`` once at startup.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

PACKAGE_LOGGER = "formguard"

# Extra record attributes surfaced by JSONFormatter when present.
EXTRA_FIELDS = ("path", "element_id", "issue_code", "form_name")


class JSONFormatter(logging.Formatter):
    """Format records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json", logger_name: Optional[str] = PACKAGE_LOGGER) -> logging.Handler:
    """Attach a stream handler to the formguard logger (or ``logger_name``).

    Args:
        level: Level name; unknown names fall back to INFO
        fmt: "json" for JSONFormatter, anything else for plain text

    Returns:
        The installed handler, so callers can remove it again
    """
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger = logging.getLogger(logger_name)
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler


__all__ = [
    "PACKAGE_LOGGER",
    "JSONFormatter",
    "setup_logging",
]
