"""
Test configuration and fixtures for the Lifelink API.
Provides an in-memory database per test, an HTTP client bound to it, and
factories for accounts, hospitals, requests and donations.
"""

import os
from datetime import date
from typing import AsyncGenerator, Optional
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Must be set before anything from lifelink is imported
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["SECRET_KEY"] = "test-secret-key-for-jwt-tokens"
os.environ["LOG_TO_FILE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["SEED_PLATFORM_ADMIN"] = "false"

from lifelink.db.base import Base  # noqa: E402
from lifelink.dependencies import get_db  # noqa: E402
from lifelink.main import app  # noqa: E402
from lifelink.models import BloodRequest, Donation, Hospital, Profile, User  # noqa: E402
from lifelink.utils.authorization import AuthContext  # noqa: E402
from lifelink.utils.security import TokenManager  # noqa: E402


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Fresh database session for each test."""
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the database dependency bound to the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# --- Data Factories ---


class TestDataFactory:
    """Creates rows directly so tests do not depend on the endpoints they exercise."""

    __test__ = False

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def unique_email(prefix: str = "user") -> str:
        return f"{prefix}_{uuid4().hex[:8]}@lifelink.test"

    async def create_profile(
        self,
        role: str = "individual",
        blood_group: str = "Not Set",
        profile_complete: bool = False,
        availability_status: str = "Available",
        hospital_id=None,
        full_name: Optional[str] = None,
        **extra,
    ) -> Profile:
        user = User(
            email=self.unique_email(role),
            # Never verified in these tests; avoids argon2 cost per fixture
            password="not-a-real-hash",
        )
        self.db.add(user)
        await self.db.flush()

        profile = Profile(
            id=user.id,
            email=user.email,
            full_name=full_name or f"Test {role.replace('_', ' ').title()}",
            role=role,
            blood_group=blood_group,
            profile_complete=profile_complete,
            availability_status=availability_status,
            hospital_id=hospital_id,
            **extra,
        )
        self.db.add(profile)
        await self.db.commit()
        await self.db.refresh(profile)
        return profile

    async def create_donor(self, blood_group: str, **kwargs) -> Profile:
        kwargs.setdefault("profile_complete", True)
        kwargs.setdefault("phone_number", "+233244000000")
        kwargs.setdefault("date_of_birth", date(1990, 1, 1))
        return await self.create_profile(blood_group=blood_group, **kwargs)

    async def create_hospital(
        self, name: Optional[str] = None, status: str = "approved", **kwargs
    ) -> Hospital:
        hospital = Hospital(
            name=name or f"Test Hospital {uuid4().hex[:4]}",
            address="1 Hospital Road, Accra",
            contact_person_name="Ama Mensah",
            contact_info="+233200000000",
            license_number=kwargs.pop("license_number", f"LIC-{uuid4().hex[:8]}"),
            status=status,
            **kwargs,
        )
        self.db.add(hospital)
        await self.db.commit()
        await self.db.refresh(hospital)
        return hospital

    async def create_hospital_admin(self, hospital: Optional[Hospital]) -> Profile:
        return await self.create_profile(
            role="hospital_admin", hospital_id=hospital.id if hospital else None
        )

    async def create_blood_request(
        self,
        requester: Profile,
        hospital: Hospital,
        blood_group_needed: str = "A-",
        urgency: str = "High",
        status: str = "pending_verification",
        **kwargs,
    ) -> BloodRequest:
        blood_request = BloodRequest(
            requester_id=requester.id,
            hospital_id=hospital.id,
            patient_name=kwargs.pop("patient_name", "Kofi Boateng"),
            patient_age=kwargs.pop("patient_age", 42),
            blood_group_needed=blood_group_needed,
            urgency=urgency,
            status=status,
            **kwargs,
        )
        self.db.add(blood_request)
        await self.db.commit()
        await self.db.refresh(blood_request)
        return blood_request

    async def create_donation(
        self, donor: Profile, hospital: Hospital, request: Optional[BloodRequest] = None, **kwargs
    ) -> Donation:
        donation = Donation(
            donor_id=donor.id,
            hospital_id=hospital.id,
            request_id=request.id if request else None,
            **kwargs,
        )
        self.db.add(donation)
        await self.db.commit()
        await self.db.refresh(donation)
        return donation


@pytest.fixture
def factory(db_session: AsyncSession) -> TestDataFactory:
    return TestDataFactory(db_session)


# --- Authentication Helpers ---


def auth_headers_for(profile: Profile) -> dict:
    token = TokenManager.create_access_token({"sub": str(profile.id)})
    return {"Authorization": f"Bearer {token}"}


def context_for(profile: Optional[Profile]) -> AuthContext:
    """AuthContext without a database round trip, for the pure helpers."""
    if profile is None:
        return AuthContext(user=None, profile=None)
    return AuthContext(user=User(id=profile.id, email=profile.email or ""), profile=profile)


@pytest.fixture
def auth_headers():
    return auth_headers_for


@pytest.fixture
async def approved_hospital(factory: TestDataFactory) -> Hospital:
    return await factory.create_hospital(name="Korle Bu Teaching Hospital")


@pytest.fixture
async def individual(factory: TestDataFactory) -> Profile:
    return await factory.create_donor("O+", full_name="Yaw Asante")


@pytest.fixture
async def hospital_admin(factory: TestDataFactory, approved_hospital: Hospital) -> Profile:
    return await factory.create_hospital_admin(approved_hospital)


@pytest.fixture
async def platform_admin(factory: TestDataFactory) -> Profile:
    return await factory.create_profile(role="platform_admin")
