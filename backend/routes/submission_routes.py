# backend/routes/submission_routes.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile

from backend.intake import IncomingFile
from backend.routes.deps import get_submission_service
from backend.services import SubmissionService
from backend.services.models import SubmissionFields

router = APIRouter(tags=["submissions"])

# Browsers post multi-file inputs as "documents[]"; API clients often use "documents"
_DOCUMENT_KEYS = ("documents", "documents[]")


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


async def _read_upload(value: Any, limit: int) -> Optional[IncomingFile]:
    """
    Read an uploaded part into memory.
    Reads at most one byte past the ceiling so oversize files are detected
    without buffering them entirely.
    """
    if not isinstance(value, UploadFile):
        return None
    data = await value.read(limit + 1)
    return IncomingFile(filename=value.filename or "", data=data, content_type=value.content_type)


@router.get("/api/submit")
def submit_ready():
    return {"status": "ready", "message": "Upload endpoint is ready", "timestamp": _timestamp()}


@router.post("/api/submit")
@router.post("/api/submit_problem_statement", include_in_schema=False)
async def submit_problem_statement(
    request: Request,
    service: SubmissionService = Depends(get_submission_service),
):
    """
    Multipart submission: text fields + `logo` + optional `documents`.
    Validation / storage errors are rendered by the PortalError handler.
    """
    limit = service.intake.max_bytes
    documents: List[IncomingFile] = []

    # closing the form releases the spooled upload temp files
    async with request.form() as form:
        text = {k: v for k, v in form.items() if isinstance(v, str)}
        fields = SubmissionFields.model_validate(text)

        logo = await _read_upload(form.get("logo"), limit)
        for key in _DOCUMENT_KEYS:
            for value in form.getlist(key):
                doc = await _read_upload(value, limit)
                if doc is not None:
                    documents.append(doc)

    result = await service.submit(fields, logo, documents)
    return {
        "success": True,
        "message": "Problem statement submitted successfully!",
        "submissionId": result.submission_id,
        "documentsProcessed": result.documents_processed,
        "timestamp": _timestamp(),
    }
