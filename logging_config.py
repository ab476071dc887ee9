"""
Logging setup for the API.

Usage:
    from logging_config import setup_logging

    setup_logging()  # once at startup
    logger = logging.getLogger(__name__)
    logger.info("Booking created", extra={"booking_id": "...", "user_id": "..."})
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from config import settings

CONTEXT_FIELDS = ("user_id", "place_id", "booking_id", "review_id", "status", "room_ids")


class JSONFormatter(logging.Formatter):
    """Format log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(json_format: Optional[bool] = None, level: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Args:
        json_format: Use JSON lines (default: LOG_JSON setting)
        level: Level name (default: LOG_LEVEL setting)
    """
    if json_format is None:
        json_format = settings.log_json
    if level is None:
        level = settings.log_level

    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Reduce noise from libraries
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)
