"""Database session/engine bootstrap for the sampling platform."""

import os

from dotenv import load_dotenv
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from database.models import Base

load_dotenv()

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "sqlite+aiosqlite:///sampling.db",
)


def build_engine(url: str = DATABASE_URL) -> AsyncEngine:
    """Create an async engine; SQLite connections get foreign keys switched on."""
    connect_args = {"timeout": 30} if url.startswith("sqlite") else {}
    new_engine = create_async_engine(url, echo=False, connect_args=connect_args)

    if url.startswith("sqlite"):
        @event.listens_for(new_engine.sync_engine, "connect")
        def _sqlite_pragmas(dbapi_conn, _record):
            # ON DELETE CASCADE and FK checks are off by default in SQLite
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine = build_engine()
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncSession:
    """Provide DB session dependency for FastAPI."""
    async with async_session() as session:
        yield session


async def init_db(target: AsyncEngine | None = None):
    """Create all tables."""
    target = target or engine
    async with target.begin() as conn:
        if target.url.get_backend_name() == "sqlite":
            # SQLite performance pragmas
            await conn.exec_driver_sql("PRAGMA journal_mode=WAL")
            await conn.exec_driver_sql("PRAGMA synchronous=NORMAL")
        await conn.run_sync(Base.metadata.create_all)
