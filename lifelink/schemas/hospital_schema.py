from datetime import date, datetime
from typing import Annotated, Optional
from uuid import UUID

from pydantic import Field, StringConstraints

from lifelink.schemas.base_schema import BaseSchema, GeoPoint, HospitalStatus


RequiredText = Annotated[
    str, StringConstraints(min_length=1, max_length=255, strip_whitespace=True)
]


class HospitalApplication(BaseSchema):
    """Public application to register a hospital. Starts in pending_review."""

    name: RequiredText = Field(..., description="Hospital name")
    address: Annotated[
        str, StringConstraints(min_length=1, max_length=1000, strip_whitespace=True)
    ]
    location: Optional[GeoPoint] = None
    contact_person_name: RequiredText
    contact_info: RequiredText = Field(..., description="Phone number or email")
    license_number: Annotated[
        str, StringConstraints(min_length=1, max_length=100, strip_whitespace=True)
    ] = Field(..., description="Operating license, unique per hospital")


class HospitalResponse(BaseSchema):
    id: UUID
    name: str
    address: str
    location: Optional[GeoPoint] = None
    contact_person_name: str
    contact_info: str
    license_number: str
    application_date: date
    status: HospitalStatus
    created_at: datetime
    updated_at: datetime


class HospitalSummary(BaseSchema):
    id: UUID
    name: str
    address: str
    location: Optional[GeoPoint] = None
