from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # Store
    document_store_url: str
    data_dir: str | None

    # Logging
    log_level: str
    debug_log_requests: bool


def get_settings() -> Settings:
    # A bare name selects a local JSON store under the data dir; http(s) URLs point at CouchDB.
    document_store_url = os.getenv("DOCUMENT_STORE_URL", "documents").strip() or "documents"

    data_dir = os.getenv("DATA_DIR") or None

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    debug_log_requests = _env_bool("DEBUG_LOG_REQUESTS", False)

    return Settings(
        document_store_url=document_store_url,
        data_dir=data_dir,
        log_level=log_level,
        debug_log_requests=debug_log_requests,
    )
