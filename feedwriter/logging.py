"""Logging configuration for feedwriter."""

import json
import logging
import sys

from feedwriter.config import get_settings
from feedwriter.dates import format_date

# Passed through ``extra=`` by the feed and API modules
CONTEXT_FIELDS = ("feed_format", "item_link", "item_count", "cache_key")


class JsonFormatter(logging.Formatter):
    """One JSON object per record, carrying feed context when present."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": format_date(record.created),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                payload[field] = getattr(record, field)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(level: str | None = None) -> None:
    """
    Configure the root logger for a host application.

    JSON lines in ``prod``, a readable single-line format in ``dev``.

    Args:
        level: Overrides ``Settings.log_level`` when given
    """
    settings = get_settings()
    handler = logging.StreamHandler(sys.stdout)

    if settings.env == "prod":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-7s [%(name)s] %(message)s")
        )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel((level or settings.log_level).upper())
