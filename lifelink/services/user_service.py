from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from fastapi import HTTPException

from lifelink.db.base import utcnow
from lifelink.models.user_model import User
from lifelink.models.profile_model import Profile
from lifelink.schemas.auth_schema import UserRegister
from lifelink.schemas.base_schema import UserRole
from lifelink.services.profile_service import ProfileService
from lifelink.utils.security import TokenManager, get_password_hash, verify_password


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User)
            .options(selectinload(User.profile))
            .where(User.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def register(self, data: UserRegister) -> tuple[User, Profile]:
        """Create an account and its profile in one go"""
        if await self.get_user_by_email(data.email):
            raise HTTPException(status_code=400, detail="Email already registered")

        user = User(email=data.email.lower(), password=get_password_hash(data.password))
        self.db.add(user)
        await self.db.flush()

        profile = await ProfileService(self.db).create_profile(
            user, full_name=data.full_name, role=data.role
        )
        await self.db.refresh(user)
        return user, profile

    async def authenticate_user(self, email: str, password: str) -> dict:
        user = await self.get_user_by_email(email)
        if not user or not verify_password(password, user.password):
            raise HTTPException(status_code=401, detail="Invalid credentials")
        if not user.is_active:
            raise HTTPException(status_code=401, detail="Account is inactive")

        user.last_login = utcnow()
        await self.db.commit()

        profile = await ProfileService(self.db).get_or_create_profile(user)
        access_token = TokenManager.create_access_token(data={"sub": str(user.id)})
        return {"access_token": access_token, "user": user, "profile": profile}

    async def ensure_platform_admin(self, email: str, password: str) -> User:
        """Create or promote the bootstrap platform admin account"""
        user = await self.get_user_by_email(email)
        if user is None:
            user = User(email=email.lower(), password=get_password_hash(password))
            self.db.add(user)
            await self.db.flush()

        profile = await ProfileService(self.db).get_profile(user.id)
        if profile is None:
            profile = Profile(id=user.id, email=user.email, full_name="Platform Admin")
            self.db.add(profile)
        profile.role = UserRole.PLATFORM_ADMIN.value

        await self.db.commit()
        return user
