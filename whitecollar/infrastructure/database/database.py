"""Engines and sessions for the catalog database.

One sync engine serves the request handlers. The async engine backs the
async admission path and schema creation at startup. Both are created lazily
from ``settings`` so importing this module never opens a connection.
"""

from collections.abc import Generator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.future import Engine
from sqlmodel import Session, SQLModel, create_engine

from ...config import settings


def _is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def _is_postgresql(database_url: str) -> bool:
    return database_url.startswith("postgresql")


def _get_engine() -> Engine:
    database_url = settings.database_url
    options: dict[str, Any] = {}

    if _is_sqlite(database_url):
        # Requests are served from a thread pool
        options["connect_args"] = {"check_same_thread": False}
    elif _is_postgresql(database_url):
        options.update(pool_pre_ping=True, pool_size=10, max_overflow=20)

    return create_engine(database_url, **options)


def _get_async_engine() -> AsyncEngine:
    database_url = settings.database_url
    options: dict[str, Any]

    if _is_sqlite(database_url):
        options = {}
    elif _is_postgresql(database_url):
        options = {
            "pool_size": 20,
            "max_overflow": 15,
            "pool_recycle": 3600,
            "pool_pre_ping": True,
        }
    else:
        raise ValueError(f"Unsupported database URL: {database_url}")

    return create_async_engine(settings.async_database_url, **options)


_engine: Engine | None = None
_async_engine: AsyncEngine | None = None


def get_main_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = _get_engine()
    return _engine


def get_async_engine() -> AsyncEngine:
    global _async_engine
    if _async_engine is None:
        _async_engine = _get_async_engine()
    return _async_engine


def init_db(engine: Engine) -> None:
    """Create the shop and picture tables if they are missing."""
    SQLModel.metadata.create_all(engine)


async def init_async_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency yielding one session per request."""
    with Session(get_main_engine()) as session:
        yield session

