from typing import Optional
from uuid import UUID, uuid4

from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from lifelink.db.base import utcnow
from lifelink.models.request_model import BloodRequest
from lifelink.schemas.notification_schema import NotificationRecord
from lifelink.services.kv_store import KeyValueStore
from lifelink.utils.logging_config import get_logger

logger = get_logger(__name__)


def notification_key(notification_id) -> str:
    return f"notification:{notification_id}"


def donor_index_prefix(donor_id) -> str:
    return f"donor_notifications:{donor_id}:"


def donor_index_key(donor_id, notification_id) -> str:
    return f"{donor_index_prefix(donor_id)}{notification_id}"


def build_notification_message(blood_group_needed: str, hospital_name: str) -> str:
    return f"New blood donation request: {blood_group_needed} needed at {hospital_name}"


class NotificationService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = KeyValueStore(db)

    async def _get_request_with_context(self, request_id: UUID) -> BloodRequest:
        result = await self.db.execute(
            select(BloodRequest)
            .options(
                selectinload(BloodRequest.hospital),
                selectinload(BloodRequest.requester),
            )
            .where(BloodRequest.id == request_id)
        )
        blood_request = result.scalar_one_or_none()
        if blood_request is None:
            raise HTTPException(status_code=404, detail="Request not found")
        return blood_request

    async def notify_donors(self, request_id: UUID, donor_ids: list[UUID]) -> int:
        """
        Fan a blood request out to donors.

        For each donor the primary record is written before its index entry,
        and each write is committed on its own. A failure part way through
        keeps the notifications already written. Repeating the call creates
        duplicates.
        """
        blood_request = await self._get_request_with_context(request_id)
        blood_group = _enum_value(blood_request.blood_group_needed)
        urgency = _enum_value(blood_request.urgency)
        message = build_notification_message(blood_group, blood_request.hospital.name)

        logger.info(
            "Dispatching donor notifications",
            extra={
                "event_type": "donor_notification_fanout",
                "blood_request_id": str(request_id),
                "donor_count": len(donor_ids),
                "hospital_id": str(blood_request.hospital_id),
                "requester_name": blood_request.requester.full_name
                if blood_request.requester
                else None,
            },
        )

        created = 0
        for donor_id in donor_ids:
            record = NotificationRecord(
                id=uuid4(),
                donor_id=donor_id,
                request_id=blood_request.id,
                message=message,
                urgency=urgency,
                created_at=utcnow(),
                read=False,
            )
            await self.store.set(notification_key(record.id), record.to_storage())
            await self.store.set(donor_index_key(donor_id, record.id), str(record.id))
            created += 1

        return created

    async def get_notification(self, notification_id) -> Optional[NotificationRecord]:
        raw = await self.store.get(notification_key(notification_id))
        return _parse_record(raw, notification_id)

    async def get_donor_notifications(self, donor_id: UUID) -> list[NotificationRecord]:
        """All notifications for a donor, newest first. Dangling index entries are skipped."""
        entries = await self.store.get_by_prefix(donor_index_prefix(donor_id))

        notifications = []
        for key, notification_id in entries:
            record = await self.get_notification(notification_id)
            if record is None:
                logger.warning(
                    "Skipping unresolved notification index entry",
                    extra={"event_type": "notification_index_dangling", "index_key": key},
                )
                continue
            if record.donor_id != donor_id:
                continue
            notifications.append(record)

        notifications.sort(key=lambda n: n.created_at, reverse=True)
        return notifications

    async def mark_as_read(self, notification_id: UUID, donor_id: UUID) -> NotificationRecord:
        record = await self.get_notification(notification_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Notification not found")
        if record.donor_id != donor_id:
            raise HTTPException(status_code=403, detail="Unauthorized")

        if not record.read:
            record.read = True
            await self.store.set(notification_key(notification_id), record.to_storage())
        return record


def _enum_value(value) -> str:
    return getattr(value, "value", value)


def _parse_record(raw, notification_id) -> Optional[NotificationRecord]:
    if raw is None:
        return None
    try:
        return NotificationRecord.model_validate(raw)
    except ValidationError:
        logger.warning(
            "Discarding malformed notification record",
            extra={
                "event_type": "notification_record_invalid",
                "notification_id": str(notification_id),
            },
        )
        return None
