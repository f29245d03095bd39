from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from lifelink.dependencies import get_db
from lifelink.schemas.setup_schema import DatabaseStatus
from lifelink.services.setup_service import SetupService
from lifelink.utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/setup", tags=["setup"])


@router.get("/status", response_model=DatabaseStatus)
async def database_status(db: AsyncSession = Depends(get_db)):
    """Report whether the required tables exist, with remediation steps if not"""
    try:
        return await SetupService(db).check_database_setup()
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Database setup check failed",
            extra={"event_type": "setup_check_error", "error": str(e)},
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail="Database setup check failed")
