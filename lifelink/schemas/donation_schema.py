from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import field_validator

from lifelink.schemas.base_schema import BaseSchema


class DonationCreate(BaseSchema):
    donor_id: UUID
    hospital_id: UUID
    request_id: Optional[UUID] = None
    donation_date: Optional[date] = None

    @field_validator("donation_date")
    @classmethod
    def validate_donation_date(cls, v: Optional[date]) -> Optional[date]:
        if v is not None and v > date.today():
            raise ValueError("Donation date cannot be in the future")
        return v


class DonationResponse(BaseSchema):
    id: UUID
    donor_id: UUID
    hospital_id: UUID
    request_id: Optional[UUID] = None
    donation_date: date
    created_at: datetime
