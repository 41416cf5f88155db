# backend/boutique/config.py
from __future__ import annotations
import os


def _split_origins(value: str) -> tuple[str, ...]:
    return tuple(origin.strip() for origin in value.split(",") if origin.strip())


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/boutique.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///boutique.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Key of the single shop document in state_documents
    BOUTIQUE_DATA_KEY = os.environ.get("BOUTIQUE_DATA_KEY", "appState")

    # Client side: where the persistence gateway finds /data
    BOUTIQUE_API_URL = os.environ.get("BOUTIQUE_API_URL", "http://127.0.0.1:5000")
    BOUTIQUE_SAVE_DEBOUNCE_SECONDS = float(os.environ.get("BOUTIQUE_SAVE_DEBOUNCE_SECONDS", "1.0"))
    BOUTIQUE_HTTP_TIMEOUT = float(os.environ.get("BOUTIQUE_HTTP_TIMEOUT", "10"))

    CORS_ALLOWED_ORIGINS = _split_origins(os.environ.get(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
    ))
