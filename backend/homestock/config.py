# backend/homestock/config.py
from __future__ import annotations
import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/homestock.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///homestock.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Header carrying the caller identity, already verified upstream
    IDENTITY_HEADER = os.environ.get("IDENTITY_HEADER", "X-Identity")

    AUDIT_DEFAULT_LIMIT = int(os.environ.get("AUDIT_DEFAULT_LIMIT", "100"))
    AUDIT_MAX_LIMIT = 500
