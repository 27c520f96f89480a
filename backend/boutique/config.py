# backend/boutique/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/boutique.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///boutique.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # When true, exchange replacements must be in stock like sale lines.
    # Default keeps the shop-floor behaviour: an exchange always goes through
    # and an oversold replacement is reconciled by hand afterwards.
    STRICT_EXCHANGE_STOCK = _env_flag("STRICT_EXCHANGE_STOCK", False)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Comma-separated browser origins allowed to call the API (the
    # storefront/dashboard dev servers by default).
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    ]
