"""
Application configuration — environment-aware settings.

All environment variables are documented here. See .env.example for a template.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).parent

load_dotenv(BASE_DIR / ".env")


class BaseConfig:
    # Core Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key-change-in-production")
    JSON_SORT_KEYS = False

    # Record store: "sqlite" (default), "redis" or "memory"
    RECORD_STORE = os.environ.get("RECORD_STORE", "sqlite")
    DATABASE = os.environ.get("DATABASE", str(BASE_DIR / "campus_portal.db"))
    REDIS_URL = os.environ.get("REDIS_URL", "")
    STORE_LOCK_TIMEOUT = float(os.environ.get("STORE_LOCK_TIMEOUT", "5"))  # max wait for a lock
    STORE_LOCK_TTL = float(os.environ.get("STORE_LOCK_TTL", "30"))  # Redis lock expiry

    # Bearer tokens
    JWT_SECRET = os.environ.get("JWT_SECRET", "dev-jwt-secret-change-me")
    JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    # Browser clients allowed to call the API ("*" or comma-separated origins)
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Logging
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")  # "json" or "text"
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")


class ProductionConfig(BaseConfig):
    DEBUG = False
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json")

    @classmethod
    def validate(cls):
        """Fail fast on missing or insecure configuration in production."""
        errors: list[str] = []

        if cls.SECRET_KEY in ("dev-key-change-in-production", ""):
            errors.append("SECRET_KEY must be set to a secure value in production.")
        if cls.JWT_SECRET in ("dev-jwt-secret-change-me", ""):
            errors.append("JWT_SECRET must be set to a secure value in production.")
        if cls.RECORD_STORE == "redis" and not cls.REDIS_URL:
            errors.append("REDIS_URL is required when RECORD_STORE=redis.")

        if errors:
            raise RuntimeError(
                "Production configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            )


class TestingConfig(BaseConfig):
    TESTING = True
    RECORD_STORE = "memory"
    JWT_SECRET = "test-jwt-secret"


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
