from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from lifelink.schemas.base_schema import BaseSchema, Urgency


class NotificationRecord(BaseModel):
    """Stored shape of a notification in the key-value store"""

    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    id: UUID
    donor_id: UUID
    request_id: UUID
    message: str
    urgency: Urgency
    created_at: datetime
    read: bool = False

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def to_storage(self) -> dict:
        return self.model_dump(mode="json")


class NotifyDonorsRequest(BaseSchema):
    # Validated in the route so missing fields give 400
    request_id: Optional[UUID] = None
    donor_ids: Optional[list[UUID]] = None


class NotifyDonorsResponse(BaseSchema):
    success: bool = True
    message: str
    notifications_count: int


class NotificationListResponse(BaseSchema):
    success: bool = True
    notifications: list[NotificationRecord]
    unread_count: int


class NotificationActionResponse(BaseSchema):
    success: bool = True
    message: str
