"""Structured logging setup for the analytics search library."""

import json
import logging
import sys
from typing import Optional


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        # Structured fields emitted by the search fetcher
        for attr in [
            "error_code",
            "stage",
            "path",
            "scroll_id",
            "page",
            "hits_count",
        ]:
            if hasattr(record, attr):
                value = getattr(record, attr)
                data[attr] = value.value if hasattr(value, "value") else value
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, default=str)


def setup_logging(level: Optional[str] = None) -> None:
    if level is None:
        from analytics_search.core.config import get_settings

        level = get_settings().LOG_LEVEL
    root = logging.getLogger()
    root.setLevel(level.upper())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.handlers = [handler]
