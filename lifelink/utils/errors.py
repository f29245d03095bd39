from typing import NoReturn, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from lifelink.utils.logging_config import get_logger

logger = get_logger(__name__)

DATABASE_NOT_SETUP = "DATABASE_NOT_SETUP"
RLS_RECURSION_ERROR = "RLS_RECURSION_ERROR"

SETUP_INSTRUCTIONS = {
    DATABASE_NOT_SETUP: [
        "Run `alembic upgrade head` against the configured DATABASE_URL.",
        "Or start the API once with AUTO_CREATE_TABLES=true on a development database.",
        "Confirm the tables profiles, hospitals, blood_requests and donations exist.",
    ],
    RLS_RECURSION_ERROR: [
        "A row-level security policy references the table it protects.",
        "Drop the recursive policy and re-create it without a self-referencing subquery.",
        "Re-run the setup check once the policy has been replaced.",
    ],
}


class DatabaseTimeoutError(Exception):
    """Raised when a database operation does not finish before its deadline."""

    def __init__(self, operation: Optional[str] = None):
        self.operation = operation
        super().__init__("Database operation timed out")


class DatabaseSetupError(Exception):
    """The database is reachable but not in a usable state."""

    def __init__(self, error_code: str, message: Optional[str] = None):
        self.error_code = error_code
        self.message = message or (
            "Database tables are missing"
            if error_code == DATABASE_NOT_SETUP
            else "Database policy recursion detected"
        )
        super().__init__(self.message)

    @property
    def instructions(self) -> list[str]:
        return SETUP_INSTRUCTIONS.get(self.error_code, [])


def classify_database_error(error: BaseException) -> Optional[str]:
    """Map a driver or ORM error to a setup error code, or None when unrelated."""
    if isinstance(error, DatabaseSetupError):
        return error.error_code

    orig = getattr(error, "orig", None) or error
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    text = str(error).lower()

    if sqlstate == "42P17" or "infinite recursion detected in policy" in text:
        return RLS_RECURSION_ERROR
    if (
        sqlstate == "42P01"
        or "no such table" in text
        or ("relation" in text and "does not exist" in text)
        or "pgrst116" in text
    ):
        return DATABASE_NOT_SETUP
    return None


def raise_database_error(error: Exception, detail: str) -> NoReturn:
    """Re-raise an unexpected storage failure as a setup error or a generic 500."""
    code = classify_database_error(error)
    if code:
        raise DatabaseSetupError(code) from error
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
    ) from error


async def database_setup_error_handler(
    request: Request, exc: DatabaseSetupError
) -> JSONResponse:
    logger.error(
        "Database setup error",
        extra={
            "event_type": "database_setup_error",
            "error_code": exc.error_code,
            "path": str(request.url.path),
        },
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": exc.message,
            "error": exc.error_code,
            "instructions": exc.instructions,
        },
    )
