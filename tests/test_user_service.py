import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import uuid4
from fastapi import HTTPException

from lifelink.models.profile_model import Profile
from lifelink.models.user_model import User
from lifelink.schemas.auth_schema import UserRegister
from lifelink.services.user_service import UserService
from lifelink.utils.security import TokenManager, get_password_hash


class TestUserService:
    """Test cases for UserService with a mocked session"""

    def setup_method(self):
        self.db_mock = AsyncMock(spec=AsyncSession)
        self.db_mock.add = MagicMock()
        self.user_service = UserService(self.db_mock)
        self.sample_user_id = uuid4()

    @pytest.fixture
    def sample_user(self):
        user = User(
            id=self.sample_user_id,
            email="kwesi@example.com",
            password=get_password_hash("Password123"),
            is_active=True,
        )
        user.profile = Profile(id=self.sample_user_id, email=user.email, role="individual")
        return user

    def mock_lookup(self, user):
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = user
        self.db_mock.execute.return_value = mock_result

    async def test_register_rejects_existing_email(self, sample_user):
        self.mock_lookup(sample_user)

        with pytest.raises(HTTPException) as exc_info:
            await self.user_service.register(
                UserRegister(email="kwesi@example.com", password="Password123")
            )

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Email already registered"
        self.db_mock.add.assert_not_called()

    async def test_register_creates_user_and_profile(self):
        self.mock_lookup(None)
        profile = Profile(id=uuid4(), email="new@example.com", role="hospital_admin")

        with patch(
            "lifelink.services.user_service.ProfileService.create_profile",
            AsyncMock(return_value=profile),
        ) as create_profile:
            user, created = await self.user_service.register(
                UserRegister(
                    email="New@Example.com",
                    password="Password123",
                    full_name="Adwoa Boakye",
                    role="hospital_admin",
                )
            )

        assert created is profile
        assert user.email == "new@example.com"
        assert user.password != "Password123"
        self.db_mock.flush.assert_awaited_once()
        create_profile.assert_awaited_once_with(
            user, full_name="Adwoa Boakye", role="hospital_admin"
        )

    async def test_authenticate_success(self, sample_user):
        self.mock_lookup(sample_user)

        with patch(
            "lifelink.services.user_service.ProfileService.get_or_create_profile",
            AsyncMock(return_value=sample_user.profile),
        ):
            result = await self.user_service.authenticate_user(
                "kwesi@example.com", "Password123"
            )

        assert result["user"] is sample_user
        assert result["profile"] is sample_user.profile
        assert sample_user.last_login is not None
        payload = TokenManager.decode_token(result["access_token"])
        assert payload["sub"] == str(self.sample_user_id)
        self.db_mock.commit.assert_awaited_once()

    async def test_authenticate_wrong_password(self, sample_user):
        self.mock_lookup(sample_user)

        with pytest.raises(HTTPException) as exc_info:
            await self.user_service.authenticate_user("kwesi@example.com", "nope")

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid credentials"
        self.db_mock.commit.assert_not_awaited()

    async def test_authenticate_inactive(self, sample_user):
        sample_user.is_active = False
        self.mock_lookup(sample_user)

        with pytest.raises(HTTPException) as exc_info:
            await self.user_service.authenticate_user("kwesi@example.com", "Password123")

        assert exc_info.value.detail == "Account is inactive"

    async def test_authenticate_unknown_email(self):
        self.mock_lookup(None)

        with pytest.raises(HTTPException) as exc_info:
            await self.user_service.authenticate_user("ghost@example.com", "Password123")

        assert exc_info.value.status_code == 401


class TestEnsurePlatformAdmin:
    async def test_creates_admin_once(self, db_session):
        service = UserService(db_session)

        first = await service.ensure_platform_admin("root@lifelink.test", "RootPass123")
        second = await service.ensure_platform_admin("root@lifelink.test", "RootPass123")

        assert first.id == second.id
        profile = await db_session.get(Profile, first.id)
        assert profile.role == "platform_admin"
