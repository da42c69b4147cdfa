from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

NotificationType = Literal[
    "task_reminder",
    "meeting_reminder",
    "meeting_booking",
    "deadline_alert",
    "meeting_starting",
    "general",
]


class NotificationAction(BaseModel):
    action: str
    title: str
    icon: str | None = None


class NotificationPayload(BaseModel):
    """
    Message body delivered to a user, both stored in-app and pushed.
    """

    title: str
    body: str
    icon: str | None = None
    badge: str | None = None
    data: dict[str, Any] | None = None
    actions: list[NotificationAction] = Field(default_factory=list)


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    type: str
    title: str
    message: str
    data: dict[str, Any] | None = None
    is_read: bool
    created_at: datetime


class MarkAllReadResponse(BaseModel):
    updated: int = Field(..., description="Number of notifications marked as read.")
