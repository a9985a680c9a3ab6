"""specdash configuration."""
import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_list(name: str, default: str) -> list[str]:
    value = os.getenv(name, default)
    return [part.strip() for part in value.split(",") if part.strip()]


# Package root (one level up from specdash/)
PACKAGE_ROOT = Path(__file__).resolve().parent.parent

# Database
DB_PATH = Path(os.getenv("SPECDASH_DB_PATH", str(PACKAGE_ROOT / "data" / "specdash.db")))

# Project registered and watched on startup (optional)
PROJECT_ROOT = os.getenv("SPECDASH_PROJECT_ROOT", "")

# Document tree layout
SPECS_DIR_NAME = os.getenv("SPECDASH_SPECS_DIR_NAME", "specs")
DOC_EXTENSION = ".md"

# File watcher
WATCH_ENABLED = _env_bool("SPECDASH_WATCH_ENABLED", True)
WATCH_DIR_NAMES = _env_list("SPECDASH_WATCH_DIR_NAMES", "specs,.specify")
WATCH_DEBOUNCE_MS = _env_int("SPECDASH_WATCH_DEBOUNCE_MS", 500)

# Startup sync tuning
STARTUP_SYNC_DELAY_SECONDS = _env_int("SPECDASH_STARTUP_SYNC_DELAY_SECONDS", 1)

# Server settings
HOST = os.getenv("SPECDASH_HOST", "127.0.0.1")
PORT = _env_int("SPECDASH_PORT", 8000)

# CORS
FRONTEND_ORIGIN = os.getenv("SPECDASH_FRONTEND_ORIGIN", "http://localhost:5173")
