from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from lifelink.dependencies import get_db
from lifelink.schemas.base_schema import RequestStatus, UserRole
from lifelink.schemas.request_schema import (
    BloodRequestCreate,
    BloodRequestResponse,
    BloodRequestStatusUpdate,
    VerifyBloodRequest,
    VerifyBloodRequestResponse,
)
from lifelink.services.request_service import BloodRequestService
from lifelink.utils.authorization import (
    AuthContext,
    get_auth_context,
    require_hospital_access,
    require_role,
)
from lifelink.utils.errors import raise_database_error
from lifelink.utils.ip_address_finder import get_client_ip
from lifelink.utils.logging_config import (
    get_logger,
    log_audit_event,
    log_security_event,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/requests", tags=["blood requests"])

# Served at the root alongside /find-donors and /notify-donors
verify_router = APIRouter(tags=["blood requests"])


@router.post("", response_model=BloodRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_blood_request(
    payload: BloodRequestCreate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_role(UserRole.INDIVIDUAL)),
):
    """Raise a request for blood. It stays hidden until the hospital verifies it."""
    try:
        blood_request = await BloodRequestService(db).create_request(payload, ctx.user_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Blood request creation failed",
            extra={"event_type": "blood_request_creation_error", "user_id": str(ctx.user_id)},
            exc_info=True,
        )
        raise_database_error(e, "Failed to create blood request")

    log_audit_event(
        action="create",
        resource_type="blood_request",
        resource_id=str(blood_request.id),
        new_values={
            "hospital_id": str(blood_request.hospital_id),
            "blood_group_needed": payload.blood_group_needed,
            "urgency": payload.urgency,
        },
        user_id=str(ctx.user_id),
    )
    return BloodRequestResponse.model_validate(blood_request)


@router.get("", response_model=List[BloodRequestResponse])
async def list_visible_requests(
    status_filter: Optional[RequestStatus] = Query(default=None, alias="status"),
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Requests visible to the caller according to their role"""
    requests = await BloodRequestService(db).list_requests(
        ctx, status=status_filter.value if status_filter else None
    )
    return [BloodRequestResponse.model_validate(r) for r in requests]


@router.get("/community", response_model=List[BloodRequestResponse])
async def community_requests(
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Latest active requests for the community feed"""
    requests = await BloodRequestService(db).get_community_requests()
    return [BloodRequestResponse.model_validate(r) for r in requests]


@router.get("/mine", response_model=List[BloodRequestResponse])
async def my_requests(
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    requests = await BloodRequestService(db).get_user_requests(ctx.user_id)
    return [BloodRequestResponse.model_validate(r) for r in requests]


@router.get("/hospital/{hospital_id}", response_model=List[BloodRequestResponse])
async def hospital_requests(
    hospital_id: UUID,
    request: Request,
    status_filter: Optional[RequestStatus] = Query(default=None, alias="status"),
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    require_hospital_access(ctx, hospital_id, request)
    requests = await BloodRequestService(db).get_hospital_requests(
        hospital_id, status=status_filter.value if status_filter else None
    )
    return [BloodRequestResponse.model_validate(r) for r in requests]


@router.put("/{request_id}/status", response_model=BloodRequestResponse)
async def update_request_status(
    request_id: UUID,
    payload: BloodRequestStatusUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Mark a request fulfilled or cancelled. Hospital admins and platform admins only."""
    try:
        blood_request, old_status = await BloodRequestService(db).update_status(
            request_id, payload.status, ctx
        )
    except HTTPException as e:
        if e.status_code == status.HTTP_403_FORBIDDEN:
            log_security_event(
                event_type="unauthorized_request_status_change",
                user_id=str(ctx.user_id),
                ip_address=get_client_ip(request),
                details={"blood_request_id": str(request_id), "status": payload.status},
            )
        raise
    except Exception as e:
        logger.error(
            "Blood request status update failed",
            extra={
                "event_type": "blood_request_status_error",
                "blood_request_id": str(request_id),
            },
            exc_info=True,
        )
        raise_database_error(e, "Failed to update blood request")

    log_audit_event(
        action="status_change",
        resource_type="blood_request",
        resource_id=str(request_id),
        old_values={"status": old_status},
        new_values={"status": payload.status},
        user_id=str(ctx.user_id),
    )
    return BloodRequestResponse.model_validate(blood_request)


@verify_router.post("/verify-blood-request", response_model=VerifyBloodRequestResponse)
async def verify_blood_request(
    payload: VerifyBloodRequest,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(
        require_role(
            UserRole.HOSPITAL_ADMIN,
            UserRole.PLATFORM_ADMIN,
            detail="Insufficient permissions. Only hospital admins can verify blood requests.",
        )
    ),
):
    """Activate a pending request so it appears in the community feed"""
    if payload.request_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="request_id is required"
        )

    try:
        blood_request = await BloodRequestService(db).verify_request(payload.request_id, ctx)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Blood request verification failed",
            extra={
                "event_type": "blood_request_verification_error",
                "blood_request_id": str(payload.request_id),
                "user_id": str(ctx.user_id),
            },
            exc_info=True,
        )
        raise_database_error(e, "Failed to verify blood request")

    log_audit_event(
        action="verify",
        resource_type="blood_request",
        resource_id=str(blood_request.id),
        old_values={"status": RequestStatus.PENDING_VERIFICATION.value},
        new_values={"status": RequestStatus.ACTIVE.value},
        user_id=str(ctx.user_id),
    )
    return VerifyBloodRequestResponse(
        message="Blood request verified successfully",
        request=BloodRequestResponse.model_validate(blood_request),
    )
