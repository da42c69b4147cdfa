from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from app.schemas.notification import NotificationAction, NotificationPayload
from app.services.push_client import PushClient, PushClientError

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Stores in-app notifications and relays them to the push gateway.

    Push delivery is best-effort: the notification row is committed first,
    and a gateway failure is logged rather than raised so that the action
    which triggered the notification (e.g. a booking) is not undone.
    """

    def __init__(self, db: AsyncSession, push_client: PushClient | None = None) -> None:
        self.db = db
        self.push_client = push_client

    async def send_to_user(
        self,
        user_id: str,
        payload: NotificationPayload,
        notification_type: str = "general",
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=notification_type,
            title=payload.title,
            message=payload.body,
            data=payload.data,
            is_read=False,
        )
        self.db.add(notification)
        await self.db.commit()
        await self.db.refresh(notification)

        if self.push_client is not None:
            try:
                await self.push_client.send(user_id, payload)
            except PushClientError as exc:
                logger.warning(
                    "Push delivery failed for user %s (notification %s): %s",
                    user_id,
                    notification.id,
                    exc,
                )

        return notification

    async def list_for_user(self, user_id: str, limit: int = 20) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def mark_as_read(self, notification_id: int, user_id: str) -> Notification | None:
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            return None

        notification.is_read = True
        await self.db.commit()
        await self.db.refresh(notification)
        return notification

    async def mark_all_as_read(self, user_id: str) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount or 0


def meeting_booked_payload(meeting_id: int, attendee_name: str) -> NotificationPayload:
    return NotificationPayload(
        title="New Meeting Booking",
        body=f"{attendee_name} has booked a meeting with you",
        data={"meeting_id": meeting_id, "type": "meeting_booking"},
        actions=[
            NotificationAction(action="view", title="View Details"),
        ],
    )
