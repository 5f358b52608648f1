# backend/routes/diag_routes.py
from pathlib import Path

from fastapi import APIRouter, Request

from backend.config import REPO_ROOT, config_diag_safe

router = APIRouter(tags=["diag"])


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/api/diag/paths")
def diag_paths(request: Request):
    intake = request.app.state.file_intake

    def _exists(x):
        try:
            return bool(x and Path(x).exists())
        except OSError:
            return False

    return {
        "cwd": str(Path.cwd()),
        "repo_root": str(REPO_ROOT),
        "uploads_dir": str(intake.uploads_dir),
        "logos_dir": str(intake.logos_dir),
        "documents_dir": str(intake.documents_dir),
        "exists": {
            "uploads_dir": _exists(intake.uploads_dir),
            "logos_dir": _exists(intake.logos_dir),
            "documents_dir": _exists(intake.documents_dir),
        },
    }


@router.get("/api/diag/config")
def diag_config():
    return config_diag_safe()
