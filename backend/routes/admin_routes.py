# backend/routes/admin_routes.py
"""Admin review endpoints: list, detail, status lifecycle, delete.

List / detail keep the `{error}` envelope expected by the admin panel;
status update / delete use `{success, message}` like the submit endpoint.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from backend.errors import NotFoundError, StorageError
from backend.routes.deps import get_query_service, get_submission_service
from backend.services import QueryService, SubmissionService
from backend.services.models import StatusUpdateRequest, SubmissionDetail, SubmissionSummary

router = APIRouter(tags=["admin"])


@router.get("/api/submissions", response_model=List[SubmissionSummary])
async def list_submissions(queries: QueryService = Depends(get_query_service)):
    try:
        return await queries.list_submissions()
    except StorageError as exc:
        return JSONResponse(status_code=500, content={"error": exc.message})


@router.get("/api/submission/{submission_id}", response_model=SubmissionDetail)
async def get_submission(submission_id: int, queries: QueryService = Depends(get_query_service)):
    try:
        return await queries.get_submission(submission_id)
    except NotFoundError as exc:
        return JSONResponse(status_code=404, content={"error": exc.message})
    except StorageError as exc:
        return JSONResponse(status_code=500, content={"error": exc.message})


@router.post("/api/update_status")
async def update_status(req: StatusUpdateRequest, queries: QueryService = Depends(get_query_service)):
    message = await queries.update_status(req.id, req.status)
    return {"success": True, "message": message}


@router.delete("/api/submission/{submission_id}")
async def delete_submission(
    submission_id: int,
    service: SubmissionService = Depends(get_submission_service),
):
    await service.delete_submission(submission_id)
    return {"success": True, "message": "Submission deleted successfully"}
