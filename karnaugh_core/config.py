from __future__ import annotations

import os
from dataclasses import dataclass


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    db_path: str
    log_level: str
    host: str
    port: int
    debug: bool


def load_settings() -> Settings:
    """Reads settings from the environment. KMAP_DB_DIR is read by the db layer itself."""
    return Settings(
        db_path=os.getenv("KMAP_DB", os.path.join("data", "kmap_games.db")),
        log_level=os.getenv("KMAP_LOG_LEVEL", "INFO").upper(),
        host=os.getenv("KMAP_HOST", "127.0.0.1"),
        port=int(os.getenv("KMAP_PORT", os.getenv("PORT", "5000"))),
        debug=_env_flag("FLASK_DEBUG", os.getenv("DEBUG", "0")),
    )
