# backend/routes/deps.py
"""Service lookups for route handlers (instances live on app.state)."""

from fastapi import Request

from backend.services import QueryService, SubmissionService


def get_submission_service(request: Request) -> SubmissionService:
    return request.app.state.submission_service


def get_query_service(request: Request) -> QueryService:
    return request.app.state.query_service
