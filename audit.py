"""
Audit logging — records security-relevant events.

Signups, logins, connection changes and deletions are emitted as structured
log lines on the ``audit`` logger, tagged with the request id.
"""

from __future__ import annotations

import logging

from flask import g, has_request_context, request

logger = logging.getLogger("audit")


def log_event(action: str, user_id: str | None = None, detail: str = "") -> None:
    """Emit one audit line for ``action`` performed by ``user_id``."""
    ip = ""
    request_id = "-"
    if has_request_context():
        ip = request.remote_addr or ""
        request_id = getattr(g, "request_id", "-")

    logger.info(
        "audit: %s user_id=%s detail=%s ip=%s",
        action, user_id, detail, ip,
        extra={"request_id": request_id, "user_id": user_id or "-"},
    )
