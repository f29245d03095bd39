from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class BaseSchema(BaseModel):
    """Base schema shared by request and response bodies"""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        use_enum_values=True,
        frozen=False,
        extra="forbid",
        from_attributes=True,
    )


class BloodGroup(str, Enum):
    """Canonical ABO/Rh blood types plus the unset sentinel"""

    A_POSITIVE = "A+"
    A_NEGATIVE = "A-"
    B_POSITIVE = "B+"
    B_NEGATIVE = "B-"
    AB_POSITIVE = "AB+"
    AB_NEGATIVE = "AB-"
    O_POSITIVE = "O+"
    O_NEGATIVE = "O-"
    NOT_SET = "Not Set"


class BloodType(str, Enum):
    """Blood types a request may ask for"""

    A_POSITIVE = "A+"
    A_NEGATIVE = "A-"
    B_POSITIVE = "B+"
    B_NEGATIVE = "B-"
    AB_POSITIVE = "AB+"
    AB_NEGATIVE = "AB-"
    O_POSITIVE = "O+"
    O_NEGATIVE = "O-"


class AvailabilityStatus(str, Enum):
    AVAILABLE = "Available"
    UNAVAILABLE = "Unavailable"
    RECENTLY_DONATED = "Recently Donated"


class UserRole(str, Enum):
    INDIVIDUAL = "individual"
    HOSPITAL_ADMIN = "hospital_admin"
    PLATFORM_ADMIN = "platform_admin"


class HospitalStatus(str, Enum):
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    SUSPENDED = "suspended"


class RequestStatus(str, Enum):
    PENDING_VERIFICATION = "pending_verification"
    ACTIVE = "active"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


class Urgency(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class GeoPoint(BaseSchema):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
