# backend/config.py
"""
Central configuration for the problem statement portal.

Design goals:
- Always load .env from the repository root in a deterministic way
- Resolve relative paths (uploads area, SQLite file) against the repo root
- Keep secrets out of logs (provide "safe" diagnostics)
- Fail fast at import time on invalid limits
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from sqlalchemy.engine import make_url


# ---------------------------------------------------------------------
# 1) Repo root discovery + .env loading (robust)
# ---------------------------------------------------------------------
def _find_repo_root(start: Path) -> Path:
    """
    Walk upwards until we find a folder that looks like the repository root.
    Markers: .env, pyproject.toml, README.md
    """
    markers = (".env", "pyproject.toml", "README.md")
    for p in [start, *start.parents]:
        if any((p / m).exists() for m in markers):
            return p
    # Fallback: assume backend/ is directly under repo root
    return start.parents[1]


REPO_ROOT = _find_repo_root(Path(__file__).resolve())
load_dotenv(dotenv_path=REPO_ROOT / ".env", override=False)


def _env_path(key: str, default: str) -> Path:
    """
    Return an absolute Path for env var `key`.
    Relative values are interpreted as relative to REPO_ROOT.
    """
    raw = os.getenv(key, default).strip() or default
    p = Path(raw)
    if not p.is_absolute():
        p = REPO_ROOT / p
    return p.resolve()


def _env_bool(key: str, default: str = "false") -> bool:
    return os.getenv(key, default).strip().lower() in {"1", "true", "yes", "on"}


# ---------------------------------------------------------------------
# 2) Database
# ---------------------------------------------------------------------
DATABASE_URL = os.getenv(
    "DATABASE_URL", f"sqlite+aiosqlite:///{REPO_ROOT / 'hackathon.db'}"
).strip()
SQL_ECHO = _env_bool("SQL_ECHO")


# ---------------------------------------------------------------------
# 3) Upload storage + limits
#
# Layout:
#   <UPLOADS_DIR>/logos/
#   <UPLOADS_DIR>/documents/
# ---------------------------------------------------------------------
UPLOADS_DIR = _env_path("UPLOADS_DIR", "uploads")

MAX_UPLOAD_MB = float(os.getenv("MAX_UPLOAD_MB", "10"))
MAX_UPLOAD_BYTES = int(MAX_UPLOAD_MB * 1024 * 1024)
MAX_DOCUMENTS = int(os.getenv("MAX_DOCUMENTS", "10"))

if MAX_UPLOAD_BYTES <= 0:
    raise RuntimeError(f"Invalid MAX_UPLOAD_MB='{MAX_UPLOAD_MB}'. Expected a positive number.")
if MAX_DOCUMENTS < 0:
    raise RuntimeError(f"Invalid MAX_DOCUMENTS='{MAX_DOCUMENTS}'. Expected 0 or more.")

# Canonical allow-lists (lowercase, no dot)
LOGO_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif"})
DOCUMENT_EXTENSIONS = frozenset({"pdf", "doc", "docx", "ppt", "pptx", "txt"})


# ---------------------------------------------------------------------
# 4) HTTP / logging
# ---------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()
CORS_ORIGINS: List[str] = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
] or ["*"]


def config_diag_safe() -> dict:
    """
    Safe diagnostics (no secrets).
    Used by the /api/diag/config endpoint.
    """
    return {
        "repo_root": str(REPO_ROOT),
        "database_url": make_url(DATABASE_URL).render_as_string(hide_password=True),
        "uploads_dir": str(UPLOADS_DIR),
        "max_upload_mb": MAX_UPLOAD_MB,
        "max_documents": MAX_DOCUMENTS,
        "logo_extensions": sorted(LOGO_EXTENSIONS),
        "document_extensions": sorted(DOCUMENT_EXTENSIONS),
        "log_level": LOG_LEVEL,
        "cors_origins": CORS_ORIGINS,
    }
