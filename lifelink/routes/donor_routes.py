import time

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from lifelink.config import settings
from lifelink.dependencies import get_db
from lifelink.schemas.notification_schema import NotifyDonorsRequest, NotifyDonorsResponse
from lifelink.schemas.profile_schema import (
    DonorSummary,
    FindDonorsRequest,
    FindDonorsResponse,
)
from lifelink.services.donor_service import DonorService
from lifelink.services.notification_service import NotificationService
from lifelink.utils.authorization import AuthContext, get_auth_context
from lifelink.utils.errors import raise_database_error
from lifelink.utils.ip_address_finder import get_client_ip
from lifelink.utils.logging_config import (
    get_logger,
    log_audit_event,
    log_function_call,
    log_performance_metric,
)

logger = get_logger(__name__)

router = APIRouter(tags=["donors"])


@router.post("/find-donors", response_model=FindDonorsResponse)
@log_function_call(level="INFO")
async def find_donors(
    payload: FindDonorsRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """
    Donors who can give to a recipient of ``blood_group_needed``.

    Only complete, available individual profiles are returned. The location
    and radius are accepted for forward compatibility but do not filter yet.
    """
    if not payload.blood_group_needed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Blood group is required"
        )

    start_time = time.time()
    try:
        donors, compatible_types = await DonorService(db).find_donors(
            payload.blood_group_needed,
            hospital_location=payload.hospital_location,
            radius_km=payload.radius_km or settings.DEFAULT_DONOR_SEARCH_RADIUS_KM,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Donor search failed",
            extra={
                "event_type": "donor_search_error",
                "user_id": str(ctx.user_id),
                "blood_group_needed": payload.blood_group_needed,
                "error": str(e),
            },
            exc_info=True,
        )
        raise_database_error(e, "Failed to find donors")

    duration = time.time() - start_time
    logger.info(
        "Donor search completed",
        extra={
            "event_type": "donor_search_completed",
            "user_id": str(ctx.user_id),
            "blood_group_needed": payload.blood_group_needed,
            "donor_count": len(donors),
            "client_ip": get_client_ip(request),
        },
    )
    if duration > 1.0:
        log_performance_metric(
            operation="find_donors",
            duration_seconds=duration,
            additional_metrics={"donor_count": len(donors)},
        )

    return FindDonorsResponse(
        donors=[DonorSummary.model_validate(d) for d in donors],
        blood_group_needed=payload.blood_group_needed,
        compatible_types=compatible_types,
    )


@router.post("/notify-donors", response_model=NotifyDonorsResponse)
async def notify_donors(
    payload: NotifyDonorsRequest,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Send an in-app notification about a blood request to each listed donor"""
    if payload.request_id is None or payload.donor_ids is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="request_id and donor_ids are required",
        )

    try:
        count = await NotificationService(db).notify_donors(
            payload.request_id, payload.donor_ids
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Donor notification failed",
            extra={
                "event_type": "donor_notification_error",
                "user_id": str(ctx.user_id),
                "blood_request_id": str(payload.request_id),
                "error": str(e),
            },
            exc_info=True,
        )
        raise_database_error(e, "Failed to notify donors")

    log_audit_event(
        action="notify",
        resource_type="blood_request",
        resource_id=str(payload.request_id),
        new_values={"donor_ids": [str(d) for d in payload.donor_ids]},
        user_id=str(ctx.user_id),
    )

    return NotifyDonorsResponse(
        message=f"Notifications sent to {len(payload.donor_ids)} donors",
        notifications_count=count,
    )
