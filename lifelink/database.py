import asyncio
import logging
import os
from typing import Awaitable, Optional, TypeVar

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from lifelink.config import settings
from lifelink.db.base import Base
from lifelink.utils.errors import DatabaseTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Lambda / Vercel style deployments get a fresh connection per invocation
IS_SERVERLESS = (
    os.getenv("VERCEL") == "1" or os.getenv("AWS_LAMBDA_FUNCTION_NAME") is not None
)


def build_engine(database_url: str, serverless: bool = IS_SERVERLESS) -> AsyncEngine:
    """
    Pick pooling and driver options for the configured backend.

    SQLite gets no pool tuning, Postgres gets a recycled pre-pinged pool,
    and serverless runs never hold connections between invocations.
    """
    backend = make_url(database_url).get_backend_name()
    options = {"echo": False}

    if backend == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
    elif serverless:
        options["connect_args"] = {
            "server_settings": {"application_name": "lifelink_serverless", "jit": "off"},
            "timeout": 30,
            "command_timeout": 30,
            "statement_cache_size": 0,
        }

    if serverless:
        options["poolclass"] = NullPool
    elif backend != "sqlite":
        options.update(
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_recycle=1800,
            pool_pre_ping=True,
        )

    logger.info(
        "Creating database engine",
        extra={"backend": backend, "serverless": serverless},
    )
    return create_async_engine(database_url, **options)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on."""
    if "sqlite" not in type(dbapi_connection).__module__:
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(settings.DATABASE_URL)

async_session = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Import models so metadata is complete for create_all and Alembic
from lifelink import models  # noqa: E402,F401


async def with_timeout(
    awaitable: Awaitable[T], timeout: float, operation: Optional[str] = None
) -> T:
    """Race a database awaitable against a deadline."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.warning(
            "Database operation timed out",
            extra={"operation": operation, "timeout_seconds": timeout},
        )
        raise DatabaseTimeoutError(operation) from e


async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema created", extra={"tables": len(Base.metadata.tables)})


async def close_db():
    try:
        await engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error closing database connections: {e}")
