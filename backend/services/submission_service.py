# backend/services/submission_service.py
"""
Submission intake pipeline.

Order of operations for `submit`:
  1. required text fields (all missing fields reported at once)
  2. logo + document screening (FileIntake)
  3. file writes, all confirmed on disk
  4. one transaction: problem_statements row, then supporting_documents rows

If step 4 fails, the files from step 3 are removed before StorageError is
raised, so the database never references a missing file and no orphan
files stay behind.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from backend.db import Database, ProblemStatement, SupportingDocument, utcnow
from backend.errors import NotFoundError, StorageError, ValidationError
from backend.intake import FileIntake, IncomingFile, StoredFile
from backend.intake.file_intake import DOCUMENT_KIND, LOGO_KIND
from backend.metrics import SUBMISSIONS, SUBMIT_LATENCY
from backend.services.models import (
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
    SubmissionFields,
    SubmitResult,
)

logger = logging.getLogger("ps-portal.submissions")


def clean_fields(fields: SubmissionFields) -> Dict[str, Optional[str]]:
    """
    Trim every text field and check the required ones.

    Returns column name -> value (optional blanks become None).
    Raises ValidationError listing every missing required field.
    """
    raw = fields.model_dump()
    values: Dict[str, Optional[str]] = {}
    missing: List[str] = []

    for form_name, column in REQUIRED_FIELDS.items():
        value = (raw.get(column) or "").strip()
        if not value:
            missing.append(form_name)
        values[column] = value

    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)

    for column in OPTIONAL_FIELDS.values():
        value = (raw.get(column) or "").strip()
        values[column] = value or None

    return values


class SubmissionService:
    def __init__(self, database: Database, intake: FileIntake) -> None:
        self.database = database
        self.intake = intake

    async def submit(
        self,
        fields: SubmissionFields,
        logo: Optional[IncomingFile],
        documents: Sequence[IncomingFile] = (),
    ) -> SubmitResult:
        with SUBMIT_LATENCY.time():
            try:
                values = clean_fields(fields)
                checked_logo = self.intake.check_logo(logo)
                accepted = self.intake.screen_documents(documents)
            except ValidationError as exc:
                SUBMISSIONS.labels(outcome="validation_error").inc()
                logger.info(f"Submission rejected: {exc.message}")
                raise

            try:
                stored_logo, stored_docs = await self.intake.store(checked_logo, accepted)
            except StorageError:
                SUBMISSIONS.labels(outcome="storage_error").inc()
                raise

            try:
                submission_id = await self._persist(values, stored_logo, stored_docs)
            except BaseException as exc:
                # db error, cancellation or anything else: drop the written files
                if isinstance(exc, StorageError):
                    SUBMISSIONS.labels(outcome="storage_error").inc()
                logger.warning(
                    f"Removing {1 + len(stored_docs)} file(s) written for the failed submission"
                )
                await self.intake.discard([stored_logo, *stored_docs])
                raise

        SUBMISSIONS.labels(outcome="success").inc()
        logger.info(
            f"Submission {submission_id} accepted from '{values['org_name']}' "
            f"({len(stored_docs)}/{len(documents)} documents)"
        )
        return SubmitResult(submission_id=submission_id, documents_processed=len(stored_docs))

    async def _persist(
        self,
        values: Dict[str, Optional[str]],
        logo: StoredFile,
        documents: List[StoredFile],
    ) -> int:
        now = utcnow()
        try:
            async with self.database.session() as session:
                async with session.begin():
                    ps = ProblemStatement(
                        **values,
                        logo_filename=logo.stored_name,
                        logo_original_name=logo.original_name,
                        logo_file_size=logo.size,
                        submission_date=now,
                        created_at=now,
                        updated_at=now,
                    )
                    session.add(ps)
                    await session.flush()

                    for doc in documents:
                        session.add(
                            SupportingDocument(
                                ps_id=ps.id,
                                filename=doc.stored_name,
                                original_name=doc.original_name,
                                file_size=doc.size,
                                file_type=doc.content_type,
                                upload_date=now,
                            )
                        )
                return ps.id
        except SQLAlchemyError as exc:
            logger.error(f"Database error while saving submission: {exc}")
            raise StorageError("Failed to save submission to database") from exc

    async def delete_submission(self, submission_id: int) -> None:
        """
        Delete a submission together with its documents (ORM cascade, backed by
        ON DELETE CASCADE in the schema).
        Files are removed only after the rows are gone.
        """
        try:
            async with self.database.session() as session:
                async with session.begin():
                    ps = await session.get(
                        ProblemStatement,
                        submission_id,
                        options=[selectinload(ProblemStatement.documents)],
                    )
                    if ps is None:
                        raise NotFoundError("Submission not found")

                    files = [
                        StoredFile(
                            kind=LOGO_KIND,
                            stored_name=ps.logo_filename,
                            original_name=ps.logo_original_name,
                            size=ps.logo_file_size,
                            content_type=None,
                            path=self.intake.logo_path(ps.logo_filename),
                        )
                    ]
                    files.extend(
                        StoredFile(
                            kind=DOCUMENT_KIND,
                            stored_name=d.filename,
                            original_name=d.original_name,
                            size=d.file_size,
                            content_type=d.file_type,
                            path=self.intake.document_path(d.filename),
                        )
                        for d in ps.documents
                    )
                    await session.delete(ps)
        except SQLAlchemyError as exc:
            logger.error(f"Database error while deleting submission {submission_id}: {exc}")
            raise StorageError("Failed to delete submission") from exc

        await self.intake.discard(files)
        logger.info(f"Submission {submission_id} deleted ({len(files) - 1} documents)")
