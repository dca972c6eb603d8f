"""
Environment-backed settings.

Every setting is read on demand so tests can monkeypatch the environment
without reloading modules.
"""

from __future__ import annotations

import os

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB
DEFAULT_CORS_ORIGINS = ("http://localhost:5173", "http://127.0.0.1:5173")
DEFAULT_EDITOR_SESSION_TTL_S = 60 * 60  # 1 hour idle


def env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def log_level() -> str:
    return env_str("LOG_LEVEL", "INFO").upper()


def cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ORIGINS", "").strip()
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def max_upload_bytes() -> int:
    value = env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)
    return value if value > 0 else DEFAULT_MAX_UPLOAD_BYTES


def storage_base_url() -> str:
    return env_str("STORAGE_BASE_URL", "http://storage:5000/storage/v1")


def storage_bucket() -> str:
    return env_str("STORAGE_BUCKET", "post-images")


def storage_api_key() -> str:
    return env_str("STORAGE_API_KEY")


def editor_session_ttl_s() -> int:
    value = env_int("EDITOR_SESSION_TTL_S", DEFAULT_EDITOR_SESSION_TTL_S)
    return value if value > 0 else DEFAULT_EDITOR_SESSION_TTL_S
