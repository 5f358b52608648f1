# backend/db/database.py
"""
Async database handle (engine + session factory).

Services receive a `Database` instance instead of reaching for a global
connection, so tests can point them at a throwaway SQLite file.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import event
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from backend.db.models import Base

logger = logging.getLogger("ps-portal.db")


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, (OperationalError, InterfaceError, ConnectionError))


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless the pragma is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Thin wrapper around an AsyncEngine.

    - `session()` returns a new AsyncSession (use as `async with`)
    - `init_db()` creates tables + indexes (idempotent)
    - `dispose()` closes pooled connections
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.engine = create_async_engine(url, echo=echo)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self._sessions = async_sessionmaker(self.engine, expire_on_commit=False)

    def session(self) -> AsyncSession:
        return self._sessions()

    @retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception(_is_retryable),
    )
    async def init_db(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Database ready ({self.engine.dialect.name})")

    async def dispose(self) -> None:
        await self.engine.dispose()


def create_database(url: Optional[str] = None, echo: Optional[bool] = None) -> Database:
    """Build a Database from explicit arguments, falling back to backend.config."""
    from backend.config import DATABASE_URL, SQL_ECHO

    return Database(url or DATABASE_URL, echo=SQL_ECHO if echo is None else echo)
