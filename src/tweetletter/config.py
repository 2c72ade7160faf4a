"""Centralised configuration loaded from environment variables and dotenv."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ── Paths ──────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# ── X API ──────────────────────────────────────────────────────────────────
X_BEARER_TOKEN: str = os.getenv("X_BEARER_TOKEN", "")
# Recent Search page size used for every query term.
PAGE_SIZE: int = 20
SEARCH_WORKERS: int = int(os.getenv("TWEETLETTER_SEARCH_WORKERS", "4"))

# ── Storage / catalogue ───────────────────────────────────────────────────
DB_BASE: Path = Path(os.getenv("TWEETLETTER_DB_DIR", str(PROJECT_ROOT / "var")))
SECTORS_FILE: Path = Path(
    os.getenv("TWEETLETTER_SECTORS_FILE", str(PROJECT_ROOT / "config" / "sectors.yml"))
)

# ── Logging ────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("TWEETLETTER_LOG_LEVEL", "INFO")


def db_path(name: str = "tweetletter") -> Path:
    """Return the SQLite path for a named database under ``DB_BASE``."""
    return DB_BASE / f"{name}.sqlite3"
