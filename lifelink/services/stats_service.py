from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from lifelink.db.base import utcnow
from lifelink.models.donation_model import Donation
from lifelink.models.hospital_model import Hospital
from lifelink.models.profile_model import Profile
from lifelink.models.request_model import BloodRequest
from lifelink.schemas.base_schema import HospitalStatus, RequestStatus, Urgency, UserRole
from lifelink.schemas.stats_schema import HospitalStats, PlatformStats, UrgencyDistribution

GROWTH_WINDOW = timedelta(days=30)


def growth_rate(recent: int, previous: int) -> float:
    """Percentage change between two consecutive windows; 0 when there is no baseline"""
    if previous <= 0:
        return 0.0
    return (recent - previous) / previous * 100


class StatsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _count(self, model, *criteria) -> int:
        query = select(func.count()).select_from(model)
        if criteria:
            query = query.where(*criteria)
        return await self.db.scalar(query) or 0

    async def get_platform_stats(self, now: Optional[datetime] = None) -> PlatformStats:
        now = now or utcnow()
        window_start = now - GROWTH_WINDOW
        previous_start = now - 2 * GROWTH_WINDOW
        individual = Profile.role == UserRole.INDIVIDUAL.value

        recent_users = await self._count(
            Profile, individual, Profile.created_at >= window_start
        )
        previous_users = await self._count(
            Profile,
            individual,
            Profile.created_at >= previous_start,
            Profile.created_at < window_start,
        )

        return PlatformStats(
            total_users=await self._count(Profile, individual),
            total_hospitals=await self._count(Hospital),
            approved_hospitals=await self._count(
                Hospital, Hospital.status == HospitalStatus.APPROVED.value
            ),
            pending_hospitals=await self._count(
                Hospital, Hospital.status == HospitalStatus.PENDING_REVIEW.value
            ),
            total_requests=await self._count(BloodRequest),
            active_requests=await self._count(
                BloodRequest, BloodRequest.status == RequestStatus.ACTIVE.value
            ),
            critical_requests=await self._count(
                BloodRequest,
                BloodRequest.status == RequestStatus.ACTIVE.value,
                BloodRequest.urgency == Urgency.CRITICAL.value,
            ),
            total_donations=await self._count(Donation),
            recent_users=recent_users,
            user_growth_rate=growth_rate(recent_users, previous_users),
        )

    async def get_hospital_stats(self, hospital_id: UUID) -> HospitalStats:
        status_rows = await self.db.execute(
            select(BloodRequest.status, func.count())
            .where(BloodRequest.hospital_id == hospital_id)
            .group_by(BloodRequest.status)
        )
        by_status = {_value(status): count for status, count in status_rows.all()}

        blood_rows = await self.db.execute(
            select(BloodRequest.blood_group_needed, func.count())
            .where(BloodRequest.hospital_id == hospital_id)
            .group_by(BloodRequest.blood_group_needed)
        )
        blood_type_distribution = {
            _value(blood_group): count for blood_group, count in blood_rows.all()
        }

        urgency_rows = await self.db.execute(
            select(BloodRequest.urgency, func.count())
            .where(BloodRequest.hospital_id == hospital_id)
            .group_by(BloodRequest.urgency)
        )
        urgency_distribution = UrgencyDistribution(
            **{_value(urgency).lower(): count for urgency, count in urgency_rows.all()}
        )

        return HospitalStats(
            total_requests=sum(by_status.values()),
            active_requests=by_status.get(RequestStatus.ACTIVE.value, 0),
            fulfilled_requests=by_status.get(RequestStatus.FULFILLED.value, 0),
            pending_requests=by_status.get(RequestStatus.PENDING_VERIFICATION.value, 0),
            total_donations=await self._count(Donation, Donation.hospital_id == hospital_id),
            blood_type_distribution=blood_type_distribution,
            urgency_distribution=urgency_distribution,
        )


def _value(value) -> str:
    return getattr(value, "value", value)
