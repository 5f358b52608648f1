# backend/services/query_service.py
from __future__ import annotations

import logging
from typing import List

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from backend.db import Database, ProblemStatement, SubmissionStatus, SupportingDocument, utcnow
from backend.errors import NotFoundError, StorageError, ValidationError
from backend.metrics import STATUS_UPDATES
from backend.services.models import (
    DocumentOut,
    SubmissionDetail,
    SubmissionOut,
    SubmissionSummary,
)

logger = logging.getLogger("ps-portal.queries")

_STATUS_CHOICES = ", ".join(s.value for s in SubmissionStatus)


class QueryService:
    """Read side of the portal plus the status lifecycle."""

    def __init__(self, database: Database) -> None:
        self.database = database

    async def list_submissions(self) -> List[SubmissionSummary]:
        """Newest first, each with its document count."""
        stmt = (
            select(ProblemStatement, func.count(SupportingDocument.id).label("document_count"))
            .outerjoin(SupportingDocument, SupportingDocument.ps_id == ProblemStatement.id)
            .group_by(ProblemStatement.id)
            .order_by(ProblemStatement.submission_date.desc(), ProblemStatement.id.desc())
        )
        try:
            async with self.database.session() as session:
                rows = (await session.execute(stmt)).all()
        except SQLAlchemyError as exc:
            logger.error(f"Database error while listing submissions: {exc}")
            raise StorageError("Failed to load submissions") from exc

        return [
            SubmissionSummary(
                **SubmissionOut.model_validate(ps).model_dump(),
                document_count=count,
            )
            for ps, count in rows
        ]

    async def get_submission(self, submission_id: int) -> SubmissionDetail:
        try:
            async with self.database.session() as session:
                ps = await session.get(
                    ProblemStatement,
                    submission_id,
                    options=[selectinload(ProblemStatement.documents)],
                )
                if ps is None:
                    raise NotFoundError("Submission not found")
        except SQLAlchemyError as exc:
            logger.error(f"Database error while loading submission {submission_id}: {exc}")
            raise StorageError("Failed to load submission") from exc

        return SubmissionDetail(
            submission=SubmissionOut.model_validate(ps),
            documents=[DocumentOut.model_validate(d) for d in ps.documents],
        )

    async def update_status(self, submission_id: int, status: str) -> str:
        value = (status or "").strip()
        try:
            new_status = SubmissionStatus(value)
        except ValueError:
            raise ValidationError(f"Invalid status '{status}'. Expected one of: {_STATUS_CHOICES}.")

        try:
            async with self.database.session() as session:
                async with session.begin():
                    ps = await session.get(ProblemStatement, submission_id)
                    if ps is None:
                        raise NotFoundError("Submission not found")
                    previous = ps.status
                    ps.status = new_status.value
                    ps.updated_at = utcnow()
        except SQLAlchemyError as exc:
            logger.error(f"Database error while updating submission {submission_id}: {exc}")
            raise StorageError("Failed to update status") from exc

        STATUS_UPDATES.labels(status=new_status.value).inc()
        logger.info(f"Submission {submission_id}: {previous} -> {new_status.value}")
        return "Status updated successfully"
