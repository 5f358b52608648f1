# backend/db/models.py
"""
ORM tables for problem statements and their supporting documents.

- problem_statements: one row per submission (logo metadata inline)
- supporting_documents: zero or more rows per submission, ON DELETE CASCADE

Timestamps are naive UTC, set on the Python side so that sub-second
ordering survives on SQLite.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class SubmissionStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in SubmissionStatus)


class ProblemStatement(Base):
    __tablename__ = "problem_statements"
    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_ps_status"),
        Index("idx_ps_status", "status"),
        Index("idx_ps_submission_date", "submission_date"),
        Index("idx_ps_org_name", "org_name"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    org_name = Column(String(255), nullable=False)
    spoc_name = Column(String(255), nullable=False)
    spoc_contact = Column(String(50), nullable=False)
    contact_email = Column(String(255), nullable=False)
    ps_title = Column(String(500), nullable=False)
    ps_description = Column(Text, nullable=False)
    domain = Column(String(100))
    dataset_link = Column(String(500))
    logo_filename = Column(String(255), nullable=False)
    logo_original_name = Column(String(255), nullable=False)
    logo_file_size = Column(Integer, nullable=False)
    submission_date = Column(DateTime, nullable=False, default=utcnow)
    status = Column(String(16), nullable=False, default=SubmissionStatus.PENDING.value)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    documents = relationship(
        "SupportingDocument",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SupportingDocument.id",
    )

    def __repr__(self) -> str:
        return f"<ProblemStatement id={self.id} org={self.org_name!r} status={self.status}>"


class SupportingDocument(Base):
    __tablename__ = "supporting_documents"
    __table_args__ = (Index("idx_docs_ps_id", "ps_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    ps_id = Column(
        Integer,
        ForeignKey("problem_statements.id", ondelete="CASCADE"),
        nullable=False,
    )
    filename = Column(String(255), nullable=False, unique=True)
    original_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False)
    file_type = Column(String(100))
    upload_date = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<SupportingDocument id={self.id} ps_id={self.ps_id} file={self.filename!r}>"
