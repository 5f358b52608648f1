# backend/services/__init__.py
from .query_service import QueryService
from .submission_service import SubmissionService, clean_fields

__all__ = ["QueryService", "SubmissionService", "clean_fields"]
