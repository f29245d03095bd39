from datetime import datetime
from uuid import UUID

from lifelink.schemas.base_schema import BaseSchema


class PlatformStats(BaseSchema):
    total_users: int
    total_hospitals: int
    approved_hospitals: int
    pending_hospitals: int
    total_requests: int
    active_requests: int
    critical_requests: int
    total_donations: int
    recent_users: int
    user_growth_rate: float


class PlatformStatsResponse(BaseSchema):
    success: bool = True
    stats: PlatformStats
    timestamp: datetime


class UrgencyDistribution(BaseSchema):
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class HospitalStats(BaseSchema):
    total_requests: int
    active_requests: int
    fulfilled_requests: int
    pending_requests: int
    total_donations: int
    blood_type_distribution: dict[str, int]
    urgency_distribution: UrgencyDistribution


class HospitalAnalyticsResponse(BaseSchema):
    success: bool = True
    hospital_id: UUID
    stats: HospitalStats
    timestamp: datetime


class HealthResponse(BaseSchema):
    status: str
    timestamp: datetime
