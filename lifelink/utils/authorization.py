"""
Role and hospital scoping checks.

The predicates are pure functions over an ``AuthContext`` so services and
tests can call them without a request. The dependency factories below wrap
them for routes and log every refusal as a security event.
"""

from dataclasses import dataclass
from typing import Iterable, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status

from lifelink.models.profile_model import Profile
from lifelink.models.user_model import User
from lifelink.schemas.base_schema import UserRole
from lifelink.utils.ip_address_finder import get_client_ip, get_user_agent
from lifelink.utils.logging_config import get_logger, log_security_event
from lifelink.utils.security import get_current_user

logger = get_logger(__name__)


@dataclass
class AuthContext:
    user: Optional[User]
    profile: Optional[Profile]

    @property
    def user_id(self) -> Optional[UUID]:
        return self.user.id if self.user is not None else None

    @property
    def role(self) -> Optional[str]:
        return self.profile.role if self.profile is not None else None

    @property
    def hospital_id(self) -> Optional[UUID]:
        return self.profile.hospital_id if self.profile is not None else None


def _role_value(role) -> str:
    return role.value if isinstance(role, UserRole) else str(role)


def has_role(ctx: Optional[AuthContext], role) -> bool:
    if ctx is None or ctx.user is None or ctx.profile is None:
        return False
    return _role_value(ctx.profile.role) == _role_value(role)


def has_any_role(ctx: Optional[AuthContext], roles: Iterable) -> bool:
    if ctx is None or ctx.user is None or ctx.profile is None:
        return False
    return any(has_role(ctx, role) for role in roles)


def can_access_hospital(ctx: Optional[AuthContext], hospital_id: Optional[UUID]) -> bool:
    """Platform admins see every hospital; hospital admins only their own."""
    if has_role(ctx, UserRole.PLATFORM_ADMIN):
        return True
    if has_role(ctx, UserRole.HOSPITAL_ADMIN):
        return hospital_id is not None and ctx.profile.hospital_id == hospital_id
    return False


def can_manage_blood_requests(
    ctx: Optional[AuthContext], hospital_id: Optional[UUID] = None
) -> bool:
    if has_role(ctx, UserRole.PLATFORM_ADMIN):
        return True
    if has_role(ctx, UserRole.HOSPITAL_ADMIN) and hospital_id is not None:
        return ctx.profile.hospital_id == hospital_id
    return False


async def get_auth_context(current_user: User = Depends(get_current_user)) -> AuthContext:
    return AuthContext(user=current_user, profile=current_user.profile)


def deny(
    ctx: AuthContext,
    event_type: str,
    detail: str,
    request: Optional[Request] = None,
    details: Optional[dict] = None,
) -> HTTPException:
    """Log a refused authorization check and build the 403 to raise"""
    log_security_event(
        event_type=event_type,
        user_id=str(ctx.user_id) if ctx.user_id else None,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
        details={"role": _role_value(ctx.role) if ctx.role else None, **(details or {})},
    )
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def require_role(*roles: UserRole, detail: str = "Insufficient permissions"):
    """
    Dependency factory that lets through callers holding any of ``roles``.

    Usage:
        ctx: AuthContext = Depends(require_role(UserRole.PLATFORM_ADMIN))
    """

    async def checker(
        request: Request, ctx: AuthContext = Depends(get_auth_context)
    ) -> AuthContext:
        if not has_any_role(ctx, roles):
            raise deny(
                ctx,
                "unauthorized_role_access_attempt",
                detail,
                request=request,
                details={
                    "required_roles": [_role_value(r) for r in roles],
                    "path": str(request.url.path),
                },
            )
        logger.debug(
            "Role check passed",
            extra={
                "event_type": "role_check_passed",
                "user_id": str(ctx.user_id),
                "required_roles": [_role_value(r) for r in roles],
            },
        )
        return ctx

    return checker


def require_hospital_access(
    ctx: AuthContext, hospital_id: UUID, request: Optional[Request] = None
) -> None:
    if not can_access_hospital(ctx, hospital_id):
        raise deny(
            ctx,
            "hospital_access_denied",
            "Unauthorized",
            request=request,
            details={"hospital_id": str(hospital_id)},
        )
