from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from lifelink.dependencies import get_db
from lifelink.schemas.base_schema import UserRole
from lifelink.schemas.donation_schema import DonationCreate, DonationResponse
from lifelink.services.donation_service import DonationService
from lifelink.utils.authorization import (
    AuthContext,
    get_auth_context,
    require_hospital_access,
    require_role,
)
from lifelink.utils.errors import raise_database_error
from lifelink.utils.logging_config import get_logger, log_audit_event

logger = get_logger(__name__)

router = APIRouter(prefix="/donations", tags=["donations"])


@router.post("", response_model=DonationResponse, status_code=status.HTTP_201_CREATED)
async def record_donation(
    payload: DonationCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(
        require_role(UserRole.HOSPITAL_ADMIN, UserRole.PLATFORM_ADMIN)
    ),
):
    """Record a donation collected at the caller's hospital"""
    require_hospital_access(ctx, payload.hospital_id, request)

    try:
        donation = await DonationService(db).record_donation(payload)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Donation recording failed",
            extra={
                "event_type": "donation_record_error",
                "hospital_id": str(payload.hospital_id),
                "donor_id": str(payload.donor_id),
            },
            exc_info=True,
        )
        raise_database_error(e, "Failed to record donation")

    log_audit_event(
        action="create",
        resource_type="donation",
        resource_id=str(donation.id),
        new_values=payload.model_dump(mode="json"),
        user_id=str(ctx.user_id),
    )
    return DonationResponse.model_validate(donation)


@router.get("/mine", response_model=List[DonationResponse])
async def my_donations(
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    donations = await DonationService(db).get_donor_donations(ctx.user_id)
    return [DonationResponse.model_validate(d) for d in donations]


@router.get("/hospital/{hospital_id}", response_model=List[DonationResponse])
async def hospital_donations(
    hospital_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    require_hospital_access(ctx, hospital_id, request)
    donations = await DonationService(db).get_hospital_donations(hospital_id)
    return [DonationResponse.model_validate(d) for d in donations]
