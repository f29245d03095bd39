from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, HashingError, VerificationError, InvalidHashError
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from lifelink.config import settings
from lifelink.dependencies import get_db
from lifelink.models.user_model import User
from lifelink.utils.logging_config import get_logger

logger = get_logger(__name__)

# Argon2 password hashing configuration
ph = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=1,
    hash_len=32,
    salt_len=16,
)

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False
)


class TokenManager:
    """Issue and verify signed access tokens"""

    @staticmethod
    def create_access_token(
        data: dict, expires_delta: Optional[timedelta] = None
    ) -> str:
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        to_encode.update({"exp": expire, "type": "access"})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> dict:
        """Decode and verify a JWT token"""
        try:
            return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError as e:
            raise ValueError("Invalid or expired token") from e


def get_password_hash(password: str) -> str:
    """Hash a plaintext password using Argon2"""
    try:
        return ph.hash(password)
    except HashingError as e:
        logger.error(
            "Password hashing failed",
            extra={"event_type": "password_hashing_failed", "error": str(e)},
        )
        raise HTTPException(status_code=500, detail="Password hashing failed") from e


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against an Argon2 hashed password"""
    try:
        ph.verify(hashed_password, plain_password)
        return True
    except VerifyMismatchError:
        return False
    except (VerificationError, InvalidHashError) as e:
        logger.error(
            "Password verification error",
            extra={"event_type": "password_verification_error", "error": str(e)},
        )
        return False


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    token: Optional[str] = Depends(oauth2_scheme),
) -> User:
    """Resolve the bearer token to an active account with its profile loaded"""
    if not token:
        raise _unauthorized("Not authenticated")

    try:
        payload = TokenManager.decode_token(token)
        subject = payload.get("sub")
        if subject is None:
            raise _unauthorized("Token does not contain user ID")
        if payload.get("type") != "access":
            raise _unauthorized("Invalid token type")
        user_id = UUID(subject)
    except ValueError as e:
        logger.warning(
            "Invalid authentication credentials",
            extra={"event_type": "invalid_auth_credentials", "error": str(e)},
        )
        raise _unauthorized("Invalid authentication credentials")

    result = await db.execute(
        select(User).options(selectinload(User.profile)).where(User.id == user_id)
    )
    user = result.scalar_one_or_none()

    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized("Account is inactive")

    return user
