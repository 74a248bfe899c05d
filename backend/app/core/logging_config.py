"""Logging setup for the admin backend.

Outside development every record is one JSON line so the hosting platform's
log collector can index it. In development a short human-readable line is
used instead.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

# Extra attributes services attach via ``logger.info(..., extra={...})``
_EXTRA_FIELDS = ("table_id", "detail_page_id", "card_id", "user_id")


class JSONFormatter(logging.Formatter):
    """Serialise a record, plus any known ``extra`` fields, as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in _EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


_DEV_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(environment: str = "development", level: str = "INFO") -> None:
    """Install a single stdout handler on the root logger.

    Call once at application startup, before any log messages are emitted.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if environment == "development":
        handler.setFormatter(logging.Formatter(_DEV_FORMAT, datefmt="%H:%M:%S"))
    else:
        handler.setFormatter(JSONFormatter())
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("alembic").setLevel(logging.INFO)
