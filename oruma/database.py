"""Database handle and session management.

This module defines the declarative base shared by the ORM models and the
:class:`Database` handle, which owns exactly one SQLite connection per
logical database name and guarantees the schema exists before any query
runs.
"""

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from .core import get_settings
from .errors import ConnectionFailure


logger = logging.getLogger(__name__)


MEMORY = ":memory:"
"""Reserved database name for an ephemeral in-memory database."""


Base = declarative_base()
"""Declarative base class for SQLAlchemy models."""


def _enable_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FOREIGN KEY clauses unless enabled per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def database_url(name: str, data_dir: str | None = None) -> str:
    """
    Build the SQLAlchemy URL for a logical database name.

    Args:
        name (str): Logical name, or ``MEMORY`` for an in-memory database.
        data_dir (str | None): Directory for database files. Defaults to
            the ``DATA_DIR`` setting.

    Returns:
        str: ``sqlite+aiosqlite`` URL.
    """
    if name == MEMORY:
        return f"sqlite+aiosqlite:///{MEMORY}"

    path = Path(name)
    if not path.suffix:
        path = path.with_suffix(".db")
    if not path.is_absolute():
        path = Path(data_dir or get_settings().DATA_DIR) / path
    path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{path}"


class Database:
    """
    Lazily opened handle over one SQLite database.

    The engine uses a static pool, so every session shares the single
    connection held by this handle. ``close()`` releases it; the next
    ``ready()`` opens a fresh one.
    """

    def __init__(self, name: str | None = None, *, echo: bool | None = None):
        settings = get_settings()
        self.name = name or settings.DATABASE_NAME
        self.echo = settings.ECHO_SQL if echo is None else echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._lock = asyncio.Lock()
        # One session at a time on the shared connection.
        self._session_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"Database(name={self.name!r}, open={self.is_open})"

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    async def ready(self) -> AsyncEngine:
        """
        Return the engine, opening the database and creating the schema
        on first use.

        Safe to call repeatedly. A failed attempt leaves the handle
        closed so that the next call retries.

        Raises:
            ConnectionFailure: If the database cannot be opened or the
                schema cannot be created.
        """
        if self._engine is not None:
            return self._engine

        async with self._lock:
            if self._engine is None:
                await self._open()
        return self._engine

    open = ready

    async def _open(self) -> None:
        # Registers the tables on Base.metadata.
        from . import models  # noqa: F401

        try:
            url = database_url(self.name)
        except OSError as exc:
            raise ConnectionFailure(f"Cannot open database {self.name!r}") from exc

        engine = create_async_engine(
            url,
            echo=self.echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        event.listen(engine.sync_engine, "connect", _enable_foreign_keys)

        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, sqlite3.Error, OSError) as exc:
            await engine.dispose()
            logger.error("Failed to open database %r: %s", self.name, exc)
            raise ConnectionFailure(f"Cannot open database {self.name!r}") from exc

        logger.debug("Schema ensured for database %r", self.name)
        self._engine = engine
        self._session_factory = async_sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info("Opened database %r", self.name)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Provide an ``AsyncSession`` bound to the ready engine.

        Sessions are serialized: the block holds the handle until it
        exits, so no other session can commit or read through the shared
        connection in the middle of its transaction. The session is closed
        when the block exits. Callers commit or roll back explicitly.
        """
        async with self._session_lock:
            await self.ready()
            async with self._session_factory() as session:
                yield session

    async def close(self) -> None:
        """
        Release the connection.

        For an in-memory database this discards all data. Waits for the
        session in flight, if any, to finish.
        """
        async with self._session_lock, self._lock:
            if self._engine is None:
                return
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
        logger.info("Closed database %r", self.name)

    async def clear(self, table_name: str) -> None:
        """
        Delete every row of one table, keeping its schema.

        Intended for test setup only; never run it against a handle
        shared with live traffic.

        Args:
            table_name (str): ``"contacts"`` or ``"notes"``.

        Raises:
            ValueError: If the table is unknown.
        """
        async with self._session_lock:
            engine = await self.ready()
            table = Base.metadata.tables.get(table_name)
            if table is None:
                raise ValueError(f"Unknown table: {table_name!r}")
            async with engine.begin() as conn:
                await conn.execute(table.delete())
        logger.info("Cleared table %r in database %r", table_name, self.name)
