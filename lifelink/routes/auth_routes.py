from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from lifelink.dependencies import get_db
from lifelink.schemas.auth_schema import AuthResponse, LoginSchema, UserRegister
from lifelink.schemas.profile_schema import ProfileResponse
from lifelink.services.user_service import UserService
from lifelink.utils.ip_address_finder import get_client_ip, get_user_agent
from lifelink.utils.logging_config import get_logger, log_audit_event, log_security_event

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: UserRegister,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Create an account. The profile starts incomplete with no blood group."""
    user, profile = await UserService(db).register(payload)

    log_security_event(
        event_type="account_registered",
        user_id=str(user.id),
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
        details={"role": payload.role},
    )
    log_audit_event(
        action="register",
        resource_type="user",
        resource_id=str(user.id),
        new_values={"email": user.email, "role": payload.role},
        user_id=str(user.id),
    )
    return ProfileResponse.model_validate(profile)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginSchema,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    client_ip = get_client_ip(request)
    try:
        result = await UserService(db).authenticate_user(payload.email, payload.password)
    except HTTPException:
        log_security_event(
            event_type="failed_login_attempt",
            ip_address=client_ip,
            user_agent=get_user_agent(request),
            details={"email": payload.email},
        )
        raise

    log_security_event(
        event_type="successful_login",
        user_id=str(result["user"].id),
        ip_address=client_ip,
        user_agent=get_user_agent(request),
    )
    return AuthResponse(
        access_token=result["access_token"],
        profile=ProfileResponse.model_validate(result["profile"]),
    )
