from datetime import datetime
from typing import Annotated, Literal, Optional
from uuid import UUID

from pydantic import Field, StringConstraints

from lifelink.schemas.base_schema import BaseSchema, BloodType, RequestStatus, Urgency


class BloodRequestCreate(BaseSchema):
    patient_name: Annotated[
        str, StringConstraints(min_length=1, max_length=255, strip_whitespace=True)
    ]
    patient_age: int = Field(..., ge=0, le=150)
    blood_group_needed: BloodType
    urgency: Urgency
    hospital_id: UUID


class BloodRequestResponse(BaseSchema):
    id: UUID
    requester_id: UUID
    patient_name: str
    patient_age: int
    blood_group_needed: BloodType
    urgency: Urgency
    hospital_id: UUID
    status: RequestStatus
    created_at: datetime
    updated_at: datetime


class BloodRequestStatusUpdate(BaseSchema):
    # Verification has its own endpoint
    status: Literal["fulfilled", "cancelled"]


class VerifyBloodRequest(BaseSchema):
    request_id: Optional[UUID] = None


class VerifyBloodRequestResponse(BaseSchema):
    success: bool = True
    message: str
    request: BloodRequestResponse
