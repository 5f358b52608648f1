# backend/db/__init__.py
from .database import Database, create_database
from .models import Base, ProblemStatement, SubmissionStatus, SupportingDocument, utcnow

__all__ = [
    "Base",
    "Database",
    "ProblemStatement",
    "SubmissionStatus",
    "SupportingDocument",
    "create_database",
    "utcnow",
]
