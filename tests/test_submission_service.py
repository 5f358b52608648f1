import asyncio

import pytest
from sqlalchemy import func, select

from backend.db import ProblemStatement, SupportingDocument
from backend.errors import NotFoundError, StorageError, ValidationError
from backend.services import clean_fields

from conftest import acme_fields, count_rows, doc_file, drop_tables, logo_file, stored_files


def test_clean_fields_trims_and_blanks_optional_values():
    values = clean_fields(
        acme_fields(orgName="  Acme  ", psTitle="\tX\n", domain="   ", datasetLink=" https://d.example/x ")
    )
    assert values["org_name"] == "Acme"
    assert values["ps_title"] == "X"
    assert values["domain"] is None
    assert values["dataset_link"] == "https://d.example/x"


def test_clean_fields_reports_every_missing_field():
    with pytest.raises(ValidationError) as exc:
        clean_fields(acme_fields(orgName="", psTitle="   ", psDescription=None))
    assert exc.value.fields == ["orgName", "psTitle", "psDescription"]
    assert exc.value.message == "Missing required fields: orgName, psTitle, psDescription"


async def test_acme_example(submissions, queries):
    result = await submissions.submit(acme_fields(), logo_file("logo.png"), [])

    assert result.submission_id == 1
    assert result.documents_processed == 0

    detail = await queries.get_submission(1)
    assert detail.submission.status == "pending"
    assert detail.submission.logo_original_name == "logo.png"
    assert detail.documents == []


async def test_submitted_fields_are_stored_trimmed(submissions, queries):
    result = await submissions.submit(
        acme_fields(orgName=" Acme Corp ", spocName="Jane  ", domain=" AI/ML "),
        logo_file(),
    )
    s = (await queries.get_submission(result.submission_id)).submission

    assert result.submission_id > 0
    assert (s.org_name, s.spoc_name, s.spoc_contact, s.contact_email) == (
        "Acme Corp",
        "Jane",
        "+1 555",
        "a@acme.com",
    )
    assert (s.ps_title, s.ps_description, s.domain, s.dataset_link) == ("X", "Y", "AI/ML", None)
    assert s.submission_date == s.created_at == s.updated_at


async def test_missing_fields_create_nothing(submissions, database, intake):
    with pytest.raises(ValidationError) as exc:
        await submissions.submit(acme_fields(spocName="", contactEmail=" "), logo_file(), [doc_file("a.pdf")])

    assert exc.value.fields == ["spocName", "contactEmail"]
    assert await count_rows(database, ProblemStatement) == 0
    assert await count_rows(database, SupportingDocument) == 0
    assert stored_files(intake.logos_dir) == []
    assert stored_files(intake.documents_dir) == []


@pytest.mark.parametrize("logo", [None, logo_file("logo.bmp"), logo_file("logo")])
async def test_missing_or_invalid_logo_creates_nothing(submissions, database, intake, logo):
    with pytest.raises(ValidationError):
        await submissions.submit(acme_fields(), logo, [doc_file("a.pdf")])

    assert await count_rows(database, ProblemStatement) == 0
    assert stored_files(intake.logos_dir) == []
    assert stored_files(intake.documents_dir) == []


async def test_disallowed_documents_are_skipped(submissions, queries, intake):
    docs = [
        doc_file("brief.pdf"),
        doc_file("virus.exe"),
        doc_file("deck.pptx"),
        doc_file("image.png"),
        doc_file("notes.TXT"),
    ]
    result = await submissions.submit(acme_fields(), logo_file(), docs)

    assert result.documents_processed == 3
    detail = await queries.get_submission(result.submission_id)
    assert [d.original_name for d in detail.documents] == ["brief.pdf", "deck.pptx", "notes.TXT"]
    for d in detail.documents:
        assert d.ps_id == result.submission_id
        assert (intake.documents_dir / d.filename).exists()
    assert (intake.logos_dir / detail.submission.logo_filename).exists()
    assert len(stored_files(intake.documents_dir)) == 3


async def test_database_failure_removes_written_files(submissions, database, intake):
    await drop_tables(database)

    with pytest.raises(StorageError) as exc:
        await submissions.submit(acme_fields(), logo_file(), [doc_file("a.pdf"), doc_file("b.doc")])

    assert "database" in exc.value.message
    assert stored_files(intake.logos_dir) == []
    assert stored_files(intake.documents_dir) == []


@pytest.mark.parametrize("error", [RuntimeError("boom"), asyncio.CancelledError()])
async def test_unexpected_persist_failure_removes_written_files(
    submissions, database, intake, monkeypatch, error
):
    async def failing_persist(*args):
        raise error

    monkeypatch.setattr(submissions, "_persist", failing_persist)

    with pytest.raises(type(error)):
        await submissions.submit(acme_fields(), logo_file(), [doc_file("a.pdf")])

    assert await count_rows(database, ProblemStatement) == 0
    assert stored_files(intake.logos_dir) == []
    assert stored_files(intake.documents_dir) == []


async def test_delete_cascades_to_documents_and_files(submissions, queries, database, intake):
    keep = await submissions.submit(acme_fields(orgName="Keep"), logo_file(), [doc_file("k.pdf")])
    gone = await submissions.submit(
        acme_fields(orgName="Gone"), logo_file(), [doc_file("a.pdf"), doc_file("b.txt")]
    )

    await submissions.delete_submission(gone.submission_id)

    async with database.session() as session:
        orphans = await session.scalar(
            select(func.count())
            .select_from(SupportingDocument)
            .where(SupportingDocument.ps_id == gone.submission_id)
        )
    assert orphans == 0
    assert await count_rows(database, SupportingDocument) == 1
    assert len(stored_files(intake.logos_dir)) == 1
    assert len(stored_files(intake.documents_dir)) == 1

    with pytest.raises(NotFoundError):
        await queries.get_submission(gone.submission_id)
    assert (await queries.get_submission(keep.submission_id)).submission.org_name == "Keep"


async def test_delete_unknown_submission(submissions):
    with pytest.raises(NotFoundError):
        await submissions.delete_submission(999)
