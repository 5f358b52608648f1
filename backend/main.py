import logging
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from prometheus_client import make_asgi_app
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.config import CORS_ORIGINS, LOG_LEVEL
from backend.db import Database, create_database
from backend.errors import PortalError
from backend.intake import FileIntake, create_file_intake
from backend.metrics import REGISTRY
from backend.routes import routers
from backend.services import QueryService, SubmissionService

# ----------------------------------------------------------------------
# Logger configuration
# ----------------------------------------------------------------------
logger = logging.getLogger("ps-portal")
logger.setLevel(LOG_LEVEL)
handler = logging.StreamHandler()
formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
handler.setFormatter(formatter)

if not logger.handlers:
    logger.addHandler(handler)
else:
    for h in logger.handlers:
        h.setFormatter(formatter)


def create_app(
    database: Optional[Database] = None,
    file_intake: Optional[FileIntake] = None,
) -> FastAPI:
    """
    Build the portal app. Tests inject their own Database / FileIntake;
    otherwise both come from backend.config.
    """
    database = database or create_database()
    file_intake = file_intake or create_file_intake()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        file_intake.ensure_dirs()
        await database.init_db()
        logger.info(f"Uploads stored under {file_intake.uploads_dir}")
        yield
        await database.dispose()

    # ------------------------------------------------------------------
    # FastAPI app + CORS
    # ------------------------------------------------------------------
    app = FastAPI(title="Problem Statement Portal", lifespan=lifespan)
    app.state.database = database
    app.state.file_intake = file_intake
    app.state.submission_service = SubmissionService(database, file_intake)
    app.state.query_service = QueryService(database)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------
    # Routers (single source of truth: backend/routes/__init__.py)
    # ------------------------------------------------------------------
    for r in routers:
        app.include_router(r)

    # ------------------------------------------------------------------
    # Metrics + uploaded files
    # ------------------------------------------------------------------
    app.mount("/metrics", make_asgi_app(registry=REGISTRY))
    app.mount(
        "/uploads",
        StaticFiles(directory=file_intake.uploads_dir, check_dir=False),
        name="uploads",
    )

    # ------------------------------------------------------------------
    # Exception handlers
    # ------------------------------------------------------------------
    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # unparseable bodies, unknown routes, wrong methods
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
            for err in exc.errors()
        )
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": f"Invalid request: {problems}"},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}\n{traceback.format_exc()}"
        )
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error"},
        )

    return app


app = create_app()
