import time
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from lifelink.db.base import utcnow
from lifelink.dependencies import get_db
from lifelink.schemas.base_schema import UserRole
from lifelink.schemas.stats_schema import HospitalAnalyticsResponse, PlatformStatsResponse
from lifelink.services.stats_service import StatsService
from lifelink.utils.authorization import (
    AuthContext,
    can_access_hospital,
    deny,
    get_auth_context,
    require_role,
)
from lifelink.utils.errors import raise_database_error
from lifelink.utils.logging_config import get_logger, log_performance_metric

logger = get_logger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/platform-stats", response_model=PlatformStatsResponse)
async def get_platform_stats(
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(
        require_role(
            UserRole.PLATFORM_ADMIN, detail="Unauthorized - Admin access required"
        )
    ),
):
    """Platform-wide counts for the admin dashboard"""
    start_time = time.time()
    try:
        stats = await StatsService(db).get_platform_stats()
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Platform stats query failed",
            extra={"event_type": "platform_stats_error", "user_id": str(ctx.user_id)},
            exc_info=True,
        )
        raise_database_error(e, "Failed to load platform statistics")

    duration = time.time() - start_time
    if duration > 1.0:
        log_performance_metric(operation="platform_stats", duration_seconds=duration)

    return PlatformStatsResponse(stats=stats, timestamp=utcnow())


@router.get("/hospital/{hospital_id}", response_model=HospitalAnalyticsResponse)
async def get_hospital_analytics(
    hospital_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Request and donation figures for one hospital"""
    if not can_access_hospital(ctx, hospital_id):
        raise deny(
            ctx,
            "hospital_access_denied",
            "Unauthorized",
            request=request,
            details={"hospital_id": str(hospital_id)},
        )

    try:
        stats = await StatsService(db).get_hospital_stats(hospital_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Hospital analytics query failed",
            extra={
                "event_type": "hospital_analytics_error",
                "hospital_id": str(hospital_id),
                "user_id": str(ctx.user_id),
            },
            exc_info=True,
        )
        raise_database_error(e, "Failed to load hospital analytics")

    return HospitalAnalyticsResponse(
        hospital_id=hospital_id, stats=stats, timestamp=utcnow()
    )
