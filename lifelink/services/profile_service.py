from typing import Optional
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from lifelink.models.donation_model import Donation
from lifelink.models.hospital_model import Hospital
from lifelink.models.profile_model import Profile
from lifelink.models.request_model import BloodRequest
from lifelink.models.user_model import User
from lifelink.schemas.base_schema import (
    AvailabilityStatus,
    BloodGroup,
    HospitalStatus,
    RequestStatus,
    UserRole,
)
from lifelink.schemas.profile_schema import (
    ProfileCompletion,
    ProfileUpdate,
    RoleAssignment,
    UserStats,
)
from lifelink.utils.authorization import AuthContext, has_role


class ProfileService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_profile(self, profile_id: UUID) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.id == profile_id))
        return result.scalar_one_or_none()

    async def create_profile(
        self,
        user: User,
        full_name: Optional[str] = None,
        role: str = UserRole.INDIVIDUAL.value,
    ) -> Profile:
        profile = Profile(
            id=user.id,
            email=user.email,
            full_name=full_name,
            blood_group=BloodGroup.NOT_SET.value,
            availability_status=AvailabilityStatus.AVAILABLE.value,
            profile_complete=False,
            role=role,
        )
        self.db.add(profile)
        await self.db.commit()
        await self.db.refresh(profile)
        return profile

    async def get_or_create_profile(self, user: User) -> Profile:
        """Accounts created before profiles existed get one on first use"""
        profile = await self.get_profile(user.id)
        if profile is None:
            profile = await self.create_profile(user)
        return profile

    async def update_profile(self, profile: Profile, data: ProfileUpdate) -> Profile:
        changes = data.model_dump(exclude_unset=True)
        if "location" in changes:
            location = changes.pop("location")
            profile.latitude = location["lat"] if location else None
            profile.longitude = location["lng"] if location else None
        for field, value in changes.items():
            if value is None and field in ("blood_group", "availability_status"):
                continue
            setattr(profile, field, value)

        # Clearing any field that completion requires makes the donor unmatchable again
        if profile.profile_complete and not _has_completion_fields(profile):
            profile.profile_complete = False

        await self.db.commit()
        await self.db.refresh(profile)
        return profile

    async def complete_profile(self, profile: Profile, data: ProfileCompletion) -> Profile:
        profile.full_name = data.full_name
        profile.phone_number = data.phone_number
        profile.date_of_birth = data.date_of_birth
        profile.blood_group = data.blood_group
        if data.location is not None:
            profile.latitude = data.location.lat
            profile.longitude = data.location.lng
        if data.availability_status is not None:
            profile.availability_status = data.availability_status
        profile.profile_complete = True

        await self.db.commit()
        await self.db.refresh(profile)
        return profile

    async def list_profiles_for_role(
        self, ctx: AuthContext, role: Optional[str] = None
    ) -> list[Profile]:
        """Hospital admins only ever see individuals, whatever they ask for"""
        query = select(Profile).order_by(Profile.created_at.desc())
        if has_role(ctx, UserRole.HOSPITAL_ADMIN):
            query = query.where(Profile.role == UserRole.INDIVIDUAL.value)
        elif role:
            query = query.where(Profile.role == role)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def assign_role(self, profile_id: UUID, data: RoleAssignment) -> Profile:
        profile = await self.get_profile(profile_id)
        if profile is None:
            raise HTTPException(status_code=404, detail="Profile not found")

        hospital_id = data.hospital_id
        if data.role == UserRole.HOSPITAL_ADMIN.value:
            if hospital_id is None:
                raise HTTPException(
                    status_code=400,
                    detail="Hospital admins must be affiliated with a hospital",
                )
            hospital = await self.db.get(Hospital, hospital_id)
            if hospital is None:
                raise HTTPException(status_code=404, detail="Hospital not found")
            if hospital.status != HospitalStatus.APPROVED.value:
                raise HTTPException(
                    status_code=400, detail="Hospital must be approved first"
                )
        else:
            hospital_id = None

        profile.role = data.role
        profile.hospital_id = hospital_id
        await self.db.commit()
        await self.db.refresh(profile)
        return profile

    async def get_user_stats(self, profile_id: UUID) -> UserStats:
        donation_result = await self.db.execute(
            select(func.count(Donation.id), func.max(Donation.donation_date)).where(
                Donation.donor_id == profile_id
            )
        )
        total_donations, last_donation = donation_result.one()

        active_requests = await self.db.scalar(
            select(func.count(BloodRequest.id)).where(
                BloodRequest.requester_id == profile_id,
                BloodRequest.status.in_(
                    [
                        RequestStatus.PENDING_VERIFICATION.value,
                        RequestStatus.ACTIVE.value,
                    ]
                ),
            )
        )

        return UserStats(
            total_donations=total_donations or 0,
            active_requests=active_requests or 0,
            last_donation=last_donation,
        )

    async def delete_account(self, user_id: UUID) -> None:
        """Removing the account cascades to the profile and everything it owns"""
        user = await self.db.get(User, user_id)
        if user is None:
            raise HTTPException(status_code=404, detail="User not found")
        await self.db.delete(user)
        await self.db.commit()


def _has_completion_fields(profile: Profile) -> bool:
    blood_group = getattr(profile.blood_group, "value", profile.blood_group)
    return (
        bool(profile.full_name)
        and bool(profile.phone_number)
        and profile.date_of_birth is not None
        and blood_group not in (None, BloodGroup.NOT_SET.value)
    )
