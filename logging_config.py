"""
Structured logging configuration.

- JSON format for production (machine-parseable)
- Human-readable text for development
- Request ID per request (reuses an inbound X-Request-ID, echoes it back)
- Access logging via after_request handler, tagged with the caller's user id
"""

from __future__ import annotations

import json
import logging
import time
import uuid

from flask import Flask, g, request

REQUEST_ID_HEADER = "X-Request-ID"


class JSONFormatter(logging.Formatter):
    """Emit log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr in ("request_id", "user_id"):
            if hasattr(record, attr):
                entry[attr] = getattr(record, attr)
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _current_user_id() -> str:
    from flask_login import current_user
    try:
        return current_user.id if current_user.is_authenticated else "-"
    except Exception:
        return "-"


def init_logging(app: Flask) -> None:
    """Configure logging based on app config."""
    log_format = app.config.get("LOG_FORMAT", "text")
    log_level = app.config.get("LOG_LEVEL", "INFO")

    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
    root.addHandler(handler)

    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    @app.before_request
    def _attach_request_id():
        inbound = request.headers.get(REQUEST_ID_HEADER, "")
        g.request_id = inbound[:64] if inbound else uuid.uuid4().hex[:12]
        g.request_start = time.time()

    @app.after_request
    def _log_request(response):
        request_id = getattr(g, "request_id", "-")
        response.headers[REQUEST_ID_HEADER] = request_id
        if request.method == "OPTIONS":
            return response
        duration_ms = (time.time() - getattr(g, "request_start", time.time())) * 1000
        user_id = _current_user_id()
        app.logger.info(
            "%s %s %s %.0fms user=%s",
            request.method,
            request.path,
            response.status_code,
            duration_ms,
            user_id,
            extra={"request_id": request_id, "user_id": user_id},
        )
        return response
