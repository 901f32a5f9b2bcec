# webapp/logging_utils.py
"""
One-line JSON logs on stdout.

Services log named events with structured fields through ``log_json``:

- cache_hit / cache_miss / cache_stale   (entity, key, stale)
- cache_payload_invalid, cache_corrupt_payload   (key) -> treated as a miss
- rows_dropped   (entity, key, dropped, kept) at WARNING
- players_upserted / game_logs_upserted   (count)
- cache_pruned   (removed)
- http_request_start   (url, params)
- http_error / http_status_error   (url, error or status) at WARNING
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            payload.update(fields)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(level: str = "INFO") -> logging.Logger:
    root = logging.getLogger()
    # create_app may run more than once per process (tests); only the level moves
    root.setLevel(level.upper())
    if any(isinstance(h.formatter, JsonFormatter) for h in root.handlers):
        return root

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
    return root


def log_json(logger: logging.Logger, event: str, level: int = logging.INFO, **fields: Any) -> None:
    logger.log(level, event, extra={"fields": fields})
