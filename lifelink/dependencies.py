from typing import AsyncGenerator

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from lifelink.database import async_session
from lifelink.utils.logging_config import get_logger

logger = get_logger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session. Services commit their own writes; anything still
    pending when the handler returns is committed here, and any error rolls
    the open transaction back before it propagates.
    """
    async with async_session() as session:
        try:
            yield session
            if session.in_transaction():
                await session.commit()
        except HTTPException:
            if session.in_transaction():
                await session.rollback()
            raise
        except Exception as e:
            logger.error(
                "Request session aborted",
                extra={"event_type": "db_session_error", "error_type": type(e).__name__},
            )
            if session.in_transaction():
                await session.rollback()
            raise
