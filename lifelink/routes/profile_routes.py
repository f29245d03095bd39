from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from lifelink.dependencies import get_db
from lifelink.models.user_model import User
from lifelink.schemas.base_schema import UserRole
from lifelink.schemas.profile_schema import (
    ProfileCompletion,
    ProfileResponse,
    ProfileUpdate,
    RoleAssignment,
    UserStats,
)
from lifelink.services.profile_service import ProfileService
from lifelink.utils.authorization import AuthContext, require_role
from lifelink.utils.errors import raise_database_error
from lifelink.utils.logging_config import get_logger, log_audit_event, log_security_event
from lifelink.utils.security import get_current_user

logger = get_logger(__name__)

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    profile = await ProfileService(db).get_or_create_profile(current_user)
    return ProfileResponse.model_validate(profile)


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    payload: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update contact details, blood group, location or availability"""
    service = ProfileService(db)
    try:
        profile = await service.get_or_create_profile(current_user)
        old_values = {
            "blood_group": _value(profile.blood_group),
            "availability_status": _value(profile.availability_status),
        }
        profile = await service.update_profile(profile, payload)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Profile update failed",
            extra={"event_type": "profile_update_error", "user_id": str(current_user.id)},
            exc_info=True,
        )
        raise_database_error(e, "Failed to update profile")

    log_audit_event(
        action="update",
        resource_type="profile",
        resource_id=str(profile.id),
        old_values=old_values,
        new_values=payload.model_dump(exclude_unset=True, mode="json"),
        user_id=str(current_user.id),
    )
    return ProfileResponse.model_validate(profile)


@router.post("/me/complete", response_model=ProfileResponse)
async def complete_my_profile(
    payload: ProfileCompletion,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Fill in the details required before a donor can be matched"""
    service = ProfileService(db)
    try:
        profile = await service.get_or_create_profile(current_user)
        profile = await service.complete_profile(profile, payload)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Profile completion failed",
            extra={"event_type": "profile_completion_error", "user_id": str(current_user.id)},
            exc_info=True,
        )
        raise_database_error(e, "Failed to complete profile")

    log_audit_event(
        action="complete",
        resource_type="profile",
        resource_id=str(profile.id),
        new_values={"profile_complete": True, "blood_group": payload.blood_group},
        user_id=str(current_user.id),
    )
    return ProfileResponse.model_validate(profile)


@router.get("/me/stats", response_model=UserStats)
async def get_my_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await ProfileService(db).get_user_stats(current_user.id)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_my_account(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete the account together with everything it owns"""
    user_id = str(current_user.id)
    await ProfileService(db).delete_account(current_user.id)

    log_security_event(event_type="account_deleted", user_id=user_id)
    log_audit_event(
        action="delete", resource_type="user", resource_id=user_id, user_id=user_id
    )


@router.get("", response_model=List[ProfileResponse])
async def list_profiles(
    role: Optional[UserRole] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(
        require_role(UserRole.HOSPITAL_ADMIN, UserRole.PLATFORM_ADMIN)
    ),
):
    """Directory of profiles. Hospital admins only ever see individuals."""
    profiles = await ProfileService(db).list_profiles_for_role(
        ctx, role.value if role else None
    )
    return [ProfileResponse.model_validate(p) for p in profiles]


@router.put("/{profile_id}/role", response_model=ProfileResponse)
async def assign_profile_role(
    profile_id: UUID,
    payload: RoleAssignment,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_role(UserRole.PLATFORM_ADMIN)),
):
    """Set a user's role and hospital affiliation"""
    service = ProfileService(db)
    existing = await service.get_profile(profile_id)
    old_values = (
        {"role": _value(existing.role), "hospital_id": str(existing.hospital_id) if existing.hospital_id else None}
        if existing
        else None
    )

    profile = await service.assign_role(profile_id, payload)

    log_security_event(
        event_type="role_changed",
        user_id=str(profile_id),
        details={"new_role": payload.role, "changed_by": str(ctx.user_id)},
    )
    log_audit_event(
        action="assign_role",
        resource_type="profile",
        resource_id=str(profile_id),
        old_values=old_values,
        new_values=payload.model_dump(mode="json"),
        user_id=str(ctx.user_id),
    )
    return ProfileResponse.model_validate(profile)


def _value(value) -> str:
    return getattr(value, "value", value)
