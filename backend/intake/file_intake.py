# backend/intake/file_intake.py
"""
File intake for problem statement uploads.

Responsibilities:
- Validate the logo (required, allow-listed extension, size ceiling)
- Screen supporting documents (count limit, per-file skip policy)
- Write accepted files under generated names, confirmed on disk
- Remove files again when a later step fails (compensation) or on delete

IMPORTANT:
- Client filenames are metadata only; they never become path components.
- A document rejected by the per-file policy is skipped, not an error.
- All writes of one submission run concurrently and either all succeed or
  every file already written is removed before StorageError is raised.
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import os
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from fastapi.concurrency import run_in_threadpool

from backend.errors import StorageError, ValidationError
from backend.metrics import DOCUMENTS_SKIPPED, UPLOAD_BYTES

logger = logging.getLogger("ps-portal.intake")

LOGO_KIND = "logo"
DOCUMENT_KIND = "document"


@dataclass
class IncomingFile:
    """One uploaded file as read from the request."""

    filename: str
    data: bytes
    content_type: Optional[str] = None

    @property
    def extension(self) -> str:
        return Path(self.filename or "").suffix.lower().lstrip(".")

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class StoredFile:
    """A file accepted and written to the uploads area."""

    kind: str
    stored_name: str
    original_name: str
    size: int
    content_type: Optional[str]
    path: Path


def _write_file(path: Path, data: bytes) -> None:
    # "xb": never overwrite an existing file
    f = open(path, "xb")
    try:
        with f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
    except BaseException:
        _remove_file(path)
        raise


def _human_size(n: int) -> str:
    if n >= 1024 * 1024:
        return f"{n / (1024 * 1024):g} MB"
    if n >= 1024:
        return f"{n / 1024:g} KB"
    return f"{n} bytes"


def _remove_file(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


class FileIntake:
    def __init__(
        self,
        uploads_dir: Path,
        max_bytes: int,
        max_documents: int,
        logo_extensions: Iterable[str],
        document_extensions: Iterable[str],
    ) -> None:
        self.uploads_dir = Path(uploads_dir)
        self.logos_dir = self.uploads_dir / "logos"
        self.documents_dir = self.uploads_dir / "documents"
        self.max_bytes = max_bytes
        self.max_documents = max_documents
        self.logo_extensions = frozenset(e.lower() for e in logo_extensions)
        self.document_extensions = frozenset(e.lower() for e in document_extensions)

    def ensure_dirs(self) -> None:
        for d in (self.uploads_dir, self.logos_dir, self.documents_dir):
            d.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def check_logo(self, logo: Optional[IncomingFile]) -> IncomingFile:
        if logo is None or not (logo.filename or "").strip() or logo.size == 0:
            raise ValidationError("Organization logo is required")

        if logo.extension not in self.logo_extensions:
            allowed = ", ".join(sorted(e.upper() for e in self.logo_extensions))
            raise ValidationError(f"Invalid logo file type. Only {allowed} are allowed.")

        if logo.size > self.max_bytes:
            raise ValidationError(
                f"Logo file is too large (limit {_human_size(self.max_bytes)})."
            )
        return logo

    def screen_documents(self, documents: Iterable[IncomingFile]) -> List[IncomingFile]:
        """
        Return the documents that pass the per-file policy.

        Blank file inputs (no filename) are ignored entirely; everything else
        counts against the document limit.
        """
        submitted = [d for d in documents if (d.filename or "").strip()]
        if len(submitted) > self.max_documents:
            raise ValidationError(
                f"Too many supporting documents (at most {self.max_documents} allowed)."
            )

        accepted: List[IncomingFile] = []
        for doc in submitted:
            reason = self._document_rejection(doc)
            if reason:
                DOCUMENTS_SKIPPED.inc()
                logger.info(f"Skipping document '{doc.filename}': {reason}")
                continue
            accepted.append(doc)
        return accepted

    def _document_rejection(self, doc: IncomingFile) -> Optional[str]:
        if doc.extension not in self.document_extensions:
            return f"extension '{doc.extension or '-'}' not allowed"
        if doc.size == 0:
            return "empty file"
        if doc.size > self.max_bytes:
            return f"{doc.size} bytes exceeds limit of {self.max_bytes}"
        return None

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    @staticmethod
    def generate_name(prefix: str, extension: str) -> str:
        return f"{prefix}_{int(time.time())}_{secrets.token_hex(8)}.{extension}"

    def _plan(self, kind: str, incoming: IncomingFile) -> StoredFile:
        if kind == LOGO_KIND:
            name = self.generate_name("logo", incoming.extension)
            path = self.logos_dir / name
            content_type = incoming.content_type
        else:
            name = self.generate_name("doc", incoming.extension)
            path = self.documents_dir / name
            content_type = (
                incoming.content_type
                or mimetypes.guess_type(incoming.filename)[0]
                or "application/octet-stream"
            )
        return StoredFile(
            kind=kind,
            stored_name=name,
            original_name=incoming.filename,
            size=incoming.size,
            content_type=content_type,
            path=path,
        )

    async def _store_one(self, kind: str, incoming: IncomingFile) -> StoredFile:
        stored = self._plan(kind, incoming)
        await run_in_threadpool(_write_file, stored.path, incoming.data)
        UPLOAD_BYTES.labels(kind=kind).inc(stored.size)
        return stored

    async def store(
        self, logo: IncomingFile, documents: List[IncomingFile]
    ) -> Tuple[StoredFile, List[StoredFile]]:
        """
        Write the logo and documents concurrently.

        Returns (stored_logo, stored_documents) once every file is on disk.
        """
        self.ensure_dirs()
        jobs = [self._store_one(LOGO_KIND, logo)]
        jobs.extend(self._store_one(DOCUMENT_KIND, d) for d in documents)

        results = await asyncio.gather(*jobs, return_exceptions=True)
        stored = [r for r in results if isinstance(r, StoredFile)]
        failures = [r for r in results if isinstance(r, BaseException)]

        if failures:
            logger.error(f"File write failed ({len(failures)} of {len(results)}): {failures[0]!r}")
            await self.discard(stored)
            raise StorageError("Failed to store uploaded files")

        return stored[0], stored[1:]

    async def discard(self, files: Iterable[StoredFile]) -> None:
        """Best-effort removal of previously stored files."""
        for f in files:
            try:
                await run_in_threadpool(_remove_file, f.path)
            except OSError as exc:
                logger.warning(f"Could not remove {f.kind} file {f.stored_name}: {exc}")

    def logo_path(self, stored_name: str) -> Path:
        return self.logos_dir / stored_name

    def document_path(self, stored_name: str) -> Path:
        return self.documents_dir / stored_name


def create_file_intake() -> FileIntake:
    """Build a FileIntake from backend.config."""
    from backend.config import (
        DOCUMENT_EXTENSIONS,
        LOGO_EXTENSIONS,
        MAX_DOCUMENTS,
        MAX_UPLOAD_BYTES,
        UPLOADS_DIR,
    )

    return FileIntake(
        uploads_dir=UPLOADS_DIR,
        max_bytes=MAX_UPLOAD_BYTES,
        max_documents=MAX_DOCUMENTS,
        logo_extensions=LOGO_EXTENSIONS,
        document_extensions=DOCUMENT_EXTENSIONS,
    )
