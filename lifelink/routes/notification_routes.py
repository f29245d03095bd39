from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from lifelink.dependencies import get_db
from lifelink.schemas.notification_schema import (
    NotificationActionResponse,
    NotificationListResponse,
)
from lifelink.services.notification_service import NotificationService
from lifelink.utils.authorization import AuthContext, deny, get_auth_context
from lifelink.utils.errors import raise_database_error
from lifelink.utils.logging_config import get_logger, log_audit_event

logger = get_logger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/{donor_id}", response_model=NotificationListResponse)
async def list_donor_notifications(
    donor_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """A donor's notifications, newest first. Donors can only read their own."""
    if donor_id != str(ctx.user_id):
        raise deny(
            ctx,
            "notification_access_denied",
            "Unauthorized",
            request=request,
            details={"requested_donor_id": donor_id},
        )

    try:
        notifications = await NotificationService(db).get_donor_notifications(ctx.user_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Failed to load notifications",
            extra={"event_type": "notification_list_error", "donor_id": str(donor_id)},
            exc_info=True,
        )
        raise_database_error(e, "Failed to load notifications")

    return NotificationListResponse(
        notifications=notifications,
        unread_count=sum(1 for n in notifications if not n.read),
    )


@router.put("/{notification_id}/read", response_model=NotificationActionResponse)
async def mark_notification_read(
    notification_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    try:
        await NotificationService(db).mark_as_read(notification_id, ctx.user_id)
    except HTTPException as e:
        if e.status_code == 403:
            raise deny(
                ctx,
                "notification_access_denied",
                e.detail,
                request=request,
                details={"notification_id": str(notification_id)},
            )
        raise
    except Exception as e:
        logger.error(
            "Failed to mark notification as read",
            extra={
                "event_type": "notification_update_error",
                "notification_id": str(notification_id),
            },
            exc_info=True,
        )
        raise_database_error(e, "Failed to update notification")

    log_audit_event(
        action="mark_read",
        resource_type="notification",
        resource_id=str(notification_id),
        new_values={"read": True},
        user_id=str(ctx.user_id),
    )
    return NotificationActionResponse(message="Notification marked as read")
