"""
Campus Portal — Flask JSON API

Student social portal: events, study groups, marketplace, lost & found,
ride sharing, exam resources and a peer connection graph, with
recommendations for study groups and exam resources.
"""

from __future__ import annotations

import os
from typing import Any

from flask import Flask, Response, request as flask_request

from auth import auth_bp, login_manager
from blueprints import register_blueprints
from errors import register_error_handlers

CORS_ALLOW_HEADERS = "Authorization, Content-Type"
CORS_ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"


def _allowed_origin(configured: str, origin: str | None) -> str | None:
    if configured.strip() == "*":
        return "*"
    allowed = {o.strip() for o in configured.split(",") if o.strip()}
    return origin if origin in allowed else None


def create_app(test_config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)

    # Load config
    from config import config_by_name
    if test_config is not None:
        app.config.from_object(config_by_name["testing"])
        app.config.update(test_config)
    else:
        env = os.environ.get("FLASK_ENV", "development")
        cfg = config_by_name.get(env, config_by_name["development"])
        app.config.from_object(cfg)
        if hasattr(cfg, "validate"):
            cfg.validate()

    app.secret_key = app.config.get("SECRET_KEY", "dev-key-change-in-production")
    app.json.sort_keys = app.config.get("JSON_SORT_KEYS", False)

    # Structured logging
    from logging_config import init_logging
    init_logging(app)

    # Record store (SQLite, Redis or in-memory)
    from record_store import init_store
    init_store(app)

    register_error_handlers(app)

    # Register auth blueprint and login manager
    app.register_blueprint(auth_bp)
    login_manager.init_app(app)

    # Register all application blueprints
    register_blueprints(app)

    # CORS preflight: answer OPTIONS before routing or auth gets involved
    @app.before_request
    def answer_preflight():
        if flask_request.method == "OPTIONS":
            return Response(status=204)
        return None

    @app.after_request
    def set_cors_headers(response: Response) -> Response:
        origin = _allowed_origin(app.config.get("CORS_ORIGINS", "*"), flask_request.headers.get("Origin"))
        if origin:
            response.headers["Access-Control-Allow-Origin"] = origin
            if origin != "*":
                response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
            response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
        return response

    # Security headers
    @app.after_request
    def set_security_headers(response: Response) -> Response:
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if not app.debug:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    return app


if __name__ == "__main__":
    create_app().run(debug=True, port=int(os.environ.get("PORT", "5001")))
