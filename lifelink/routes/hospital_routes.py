import time
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from lifelink.dependencies import get_db
from lifelink.schemas.base_schema import HospitalStatus, UserRole
from lifelink.schemas.hospital_schema import (
    HospitalApplication,
    HospitalResponse,
    HospitalSummary,
)
from lifelink.services.hospital_service import HospitalService
from lifelink.utils.authorization import (
    AuthContext,
    get_auth_context,
    require_hospital_access,
    require_role,
)
from lifelink.utils.errors import raise_database_error
from lifelink.utils.ip_address_finder import get_client_ip, get_user_agent
from lifelink.utils.logging_config import (
    get_logger,
    log_audit_event,
    log_function_call,
    log_performance_metric,
    log_security_event,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/hospitals", tags=["hospitals"])


@router.post("/apply", response_model=HospitalResponse, status_code=status.HTTP_201_CREATED)
@log_function_call(level="INFO")
async def apply_for_hospital(
    application: HospitalApplication,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Submit a hospital for platform review.

    1. The application is public; no account is needed.
    2. License numbers are unique across all hospitals.
    3. The hospital starts in ``pending_review`` and is invisible until approved.
    """
    start_time = time.time()
    client_ip = get_client_ip(request)

    logger.info(
        "Hospital application started",
        extra={
            "event_type": "hospital_application_attempt",
            "hospital_name": application.name,
            "client_ip": client_ip,
            "user_agent": get_user_agent(request),
        },
    )

    try:
        hospital = await HospitalService(db).apply(application)
    except HTTPException as e:
        logger.warning(
            "Hospital application rejected",
            extra={
                "event_type": "hospital_application_rejected",
                "hospital_name": application.name,
                "reason": e.detail,
            },
        )
        raise
    except Exception as e:
        logger.error(
            "Hospital application failed due to unexpected error",
            extra={
                "event_type": "hospital_application_error",
                "hospital_name": application.name,
                "error": str(e),
            },
            exc_info=True,
        )
        raise_database_error(e, "Hospital application failed")

    duration = time.time() - start_time
    log_audit_event(
        action="apply",
        resource_type="hospital",
        resource_id=str(hospital.id),
        new_values={
            "name": hospital.name,
            "license_number": hospital.license_number,
            "contact_person_name": hospital.contact_person_name,
        },
    )
    if duration > 2.0:
        log_performance_metric(
            operation="hospital_application",
            duration_seconds=duration,
            additional_metrics={"hospital": application.name},
        )

    return HospitalResponse.model_validate(hospital)


@router.get("", response_model=List[HospitalSummary])
async def list_approved_hospitals(db: AsyncSession = Depends(get_db)):
    """Approved hospitals, for request and donation forms"""
    hospitals = await HospitalService(db).list_hospitals(HospitalStatus.APPROVED.value)
    return [HospitalSummary.model_validate(h) for h in hospitals]


@router.get("/pending", response_model=List[HospitalResponse])
async def list_pending_hospitals(
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_role(UserRole.PLATFORM_ADMIN)),
):
    hospitals = await HospitalService(db).list_pending()
    return [HospitalResponse.model_validate(h) for h in hospitals]


@router.get("/{hospital_id}", response_model=HospitalResponse)
async def get_hospital(
    hospital_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    hospital = await HospitalService(db).get_hospital_or_404(hospital_id)
    if _value(hospital.status) != HospitalStatus.APPROVED.value:
        require_hospital_access(ctx, hospital_id, request)
    return HospitalResponse.model_validate(hospital)


async def _change_status(
    action: str, hospital_id: UUID, request: Request, db: AsyncSession, ctx: AuthContext
) -> HospitalResponse:
    service = HospitalService(db)
    before = await service.get_hospital_or_404(hospital_id)
    old_status = _value(before.status)

    hospital = await getattr(service, action)(hospital_id)

    log_security_event(
        event_type=f"hospital_{action}",
        user_id=str(ctx.user_id),
        ip_address=get_client_ip(request),
        details={"hospital_id": str(hospital_id)},
    )
    log_audit_event(
        action=action,
        resource_type="hospital",
        resource_id=str(hospital_id),
        old_values={"status": old_status},
        new_values={"status": _value(hospital.status)} if action != "reject" else None,
        user_id=str(ctx.user_id),
    )
    return HospitalResponse.model_validate(hospital)


@router.post("/{hospital_id}/approve", response_model=HospitalResponse)
async def approve_hospital(
    hospital_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_role(UserRole.PLATFORM_ADMIN)),
):
    return await _change_status("approve", hospital_id, request, db, ctx)


@router.post("/{hospital_id}/suspend", response_model=HospitalResponse)
async def suspend_hospital(
    hospital_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_role(UserRole.PLATFORM_ADMIN)),
):
    return await _change_status("suspend", hospital_id, request, db, ctx)


@router.delete("/{hospital_id}", response_model=HospitalResponse)
async def reject_hospital(
    hospital_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_role(UserRole.PLATFORM_ADMIN)),
):
    """Reject an application. The hospital row is deleted."""
    return await _change_status("reject", hospital_id, request, db, ctx)


def _value(value) -> str:
    return getattr(value, "value", value)
