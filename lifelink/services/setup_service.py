from sqlalchemy import literal, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lifelink.config import settings
from lifelink.database import with_timeout
from lifelink.db.base import Base
from lifelink.schemas.setup_schema import DatabaseStatus
from lifelink.utils.errors import (
    DATABASE_NOT_SETUP,
    RLS_RECURSION_ERROR,
    SETUP_INSTRUCTIONS,
    DatabaseTimeoutError,
    classify_database_error,
)
from lifelink.utils.logging_config import get_logger

logger = get_logger(__name__)

REQUIRED_TABLES = ("profiles", "hospitals", "blood_requests", "donations")


class SetupService:
    """Probe the database for the tables the API cannot run without"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _probe(self, table_name: str, timeout: float) -> None:
        table = Base.metadata.tables[table_name]
        await with_timeout(
            self.db.execute(select(literal(1)).select_from(table).limit(1)),
            timeout,
            operation=f"probe:{table_name}",
        )

    async def check_database_setup(self) -> DatabaseStatus:
        missing_tables: list[str] = []

        for index, table_name in enumerate(REQUIRED_TABLES):
            timeout = (
                settings.DATABASE_CHECK_TIMEOUT_SECONDS
                if index == 0
                else settings.TABLE_CHECK_TIMEOUT_SECONDS
            )
            try:
                await self._probe(table_name, timeout)
            except DatabaseTimeoutError:
                await self.db.rollback()
                missing_tables.append(table_name)
            except SQLAlchemyError as e:
                await self.db.rollback()
                code = classify_database_error(e)
                if code == RLS_RECURSION_ERROR:
                    logger.error(
                        "Recursive row-level security policy detected",
                        extra={"event_type": "rls_recursion", "table": table_name},
                    )
                    return DatabaseStatus(
                        is_setup=False,
                        missing_tables=missing_tables,
                        error=RLS_RECURSION_ERROR,
                        instructions=SETUP_INSTRUCTIONS[RLS_RECURSION_ERROR],
                    )
                if code != DATABASE_NOT_SETUP:
                    raise
                missing_tables.append(table_name)

        if missing_tables:
            logger.warning(
                "Database is not set up",
                extra={"event_type": "database_not_setup", "missing_tables": missing_tables},
            )
            return DatabaseStatus(
                is_setup=False,
                missing_tables=missing_tables,
                error=DATABASE_NOT_SETUP,
                instructions=SETUP_INSTRUCTIONS[DATABASE_NOT_SETUP],
            )

        return DatabaseStatus(is_setup=True)
