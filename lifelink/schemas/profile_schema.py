from datetime import date, datetime
from typing import Annotated, Optional
from uuid import UUID

from pydantic import Field, StringConstraints, field_validator

from lifelink.schemas.base_schema import (
    AvailabilityStatus,
    BaseSchema,
    BloodGroup,
    GeoPoint,
    UserRole,
)


PhoneNumber = Annotated[
    str,
    StringConstraints(
        min_length=7,
        max_length=20,
        pattern=r"^\+?[\d\s\-\(\)]{7,20}$",
        strip_whitespace=True,
    ),
]


class ProfileResponse(BaseSchema):
    id: UUID
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    blood_group: BloodGroup
    location: Optional[GeoPoint] = None
    availability_status: AvailabilityStatus
    profile_complete: bool
    role: UserRole
    hospital_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(BaseSchema):
    """Fields a user may change on their own profile"""

    full_name: Optional[
        Annotated[str, StringConstraints(min_length=1, max_length=255)]
    ] = None
    phone_number: Optional[PhoneNumber] = None
    date_of_birth: Optional[date] = None
    blood_group: Optional[BloodGroup] = None
    location: Optional[GeoPoint] = None
    availability_status: Optional[AvailabilityStatus] = None

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, v: Optional[date]) -> Optional[date]:
        if v is not None and v > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return v


class ProfileCompletion(BaseSchema):
    """Minimum data before a donor becomes discoverable"""

    full_name: Annotated[str, StringConstraints(min_length=1, max_length=255)]
    phone_number: PhoneNumber
    date_of_birth: date
    blood_group: BloodGroup
    location: Optional[GeoPoint] = None
    availability_status: Optional[AvailabilityStatus] = None

    @field_validator("blood_group")
    @classmethod
    def validate_blood_group(cls, v):
        if v == BloodGroup.NOT_SET or v == BloodGroup.NOT_SET.value:
            raise ValueError("A blood group must be selected")
        return v

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, v: date) -> date:
        if v > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return v


class RoleAssignment(BaseSchema):
    role: UserRole
    hospital_id: Optional[UUID] = None


class UserStats(BaseSchema):
    total_donations: int = 0
    active_requests: int = 0
    last_donation: Optional[date] = None


class DonorSummary(BaseSchema):
    """Projection returned by donor search"""

    id: UUID
    full_name: Optional[str] = None
    blood_group: BloodGroup
    location: Optional[GeoPoint] = None
    phone_number: Optional[str] = None
    availability_status: AvailabilityStatus


class FindDonorsRequest(BaseSchema):
    # Optional here so a missing value is answered with 400 rather than 422
    blood_group_needed: Optional[str] = None
    hospital_location: Optional[GeoPoint] = None
    radius_km: Optional[float] = Field(default=None, gt=0)


class FindDonorsResponse(BaseSchema):
    success: bool = True
    donors: list[DonorSummary]
    blood_group_needed: str
    compatible_types: list[str]
