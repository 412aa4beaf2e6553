"""
Error taxonomy for the portal API.

Stores and route handlers raise these; ``register_error_handlers`` turns
them into ``{"error": message}`` JSON bodies with the matching status code.
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import BadRequest, HTTPException

logger = logging.getLogger(__name__)


class PortalError(Exception):
    status_code = 500

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    status_code = 400


class Unauthorized(PortalError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class Forbidden(PortalError):
    status_code = 403

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class NotFound(PortalError):
    status_code = 404


class Conflict(PortalError):
    status_code = 409


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(PortalError)
    def _portal_error(exc: PortalError):
        return jsonify({"error": exc.message}), exc.status_code

    @app.errorhandler(BadRequest)
    def _bad_request(exc: BadRequest):
        return jsonify({"error": "Invalid JSON body"}), 400

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return jsonify({"error": exc.name}), exc.code

    @app.errorhandler(Exception)
    def _unexpected(exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return jsonify({"error": "Internal server error"}), 500
