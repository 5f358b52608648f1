import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from backend.db import Base, Database
from backend.intake import FileIntake, IncomingFile
from backend.main import create_app
from backend.services import QueryService, SubmissionService
from backend.services.models import SubmissionFields

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

ACME_FORM = {
    "orgName": "Acme",
    "spocName": "A B",
    "spocContact": "+1 555",
    "contactEmail": "a@acme.com",
    "psTitle": "X",
    "psDescription": "Y",
}


def make_intake(root, max_bytes=4096, max_documents=10) -> FileIntake:
    return FileIntake(
        uploads_dir=root,
        max_bytes=max_bytes,
        max_documents=max_documents,
        logo_extensions={"jpg", "jpeg", "png", "gif"},
        document_extensions={"pdf", "doc", "docx", "ppt", "pptx", "txt"},
    )


def logo_file(name="logo.png", data=PNG_BYTES) -> IncomingFile:
    return IncomingFile(filename=name, data=data, content_type="image/png")


def doc_file(name, data=b"%PDF-1.4 sample", content_type=None) -> IncomingFile:
    return IncomingFile(filename=name, data=data, content_type=content_type)


def acme_fields(**overrides) -> SubmissionFields:
    data = dict(ACME_FORM)
    data.update(overrides)
    return SubmissionFields.model_validate(data)


async def drop_tables(database: Database) -> None:
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def count_rows(database: Database, model) -> int:
    async with database.session() as session:
        return await session.scalar(select(func.count()).select_from(model))


def stored_files(directory):
    return sorted(p.name for p in directory.iterdir()) if directory.exists() else []


@pytest.fixture
def intake(tmp_path):
    fi = make_intake(tmp_path / "uploads")
    fi.ensure_dirs()
    return fi


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'portal.db'}")
    await db.init_db()
    yield db
    await db.dispose()


@pytest.fixture
def submissions(database, intake):
    return SubmissionService(database, intake)


@pytest.fixture
def queries(database):
    return QueryService(database)


@pytest.fixture
def api_intake(tmp_path):
    return make_intake(tmp_path / "api-uploads")


@pytest.fixture
def client(tmp_path, api_intake):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")
    app = create_app(database=db, file_intake=api_intake)
    with TestClient(app) as c:
        yield c
