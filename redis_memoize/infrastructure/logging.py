from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from redis_memoize.application.call_context import cache_key_var


class CacheKeyFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.cache_key = cache_key_var.get()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "cache_key": getattr(record, "cache_key", "-"),
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(log_level: str, log_format: str = "text") -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.addFilter(CacheKeyFilter())

    if log_format.lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(cache_key)s - %(message)s"
            )
        )

    logging.basicConfig(level=level, handlers=[handler], force=True)
