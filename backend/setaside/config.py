# backend/setaside/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # Postgres in production
        "sqlite:///setaside.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Bearer tokens (HS256). Falls back to SECRET_KEY when unset.
    JWT_SECRET = os.environ.get("JWT_SECRET") or SECRET_KEY
    JWT_EXPIRES_IN = os.environ.get("JWT_EXPIRES_IN", "7d")

    BCRYPT_SALT_ROUNDS = int(os.environ.get("BCRYPT_SALT_ROUNDS", "10"))

    API_PREFIX = os.environ.get("API_PREFIX", "api/v1")

    # "*" or a comma-separated list of allowed origins
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Product images; None resolves to <instance_path>/product-images
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER")
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
