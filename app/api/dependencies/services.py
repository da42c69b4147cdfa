from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.session import get_db
from app.services.booking_locks import OwnerLockRegistry
from app.services.notifications import NotificationService
from app.services.push_client import PushClient, build_push_client


def get_push_client() -> PushClient | None:
    """
    Build a push client from current settings (None when push is disabled).
    """
    return build_push_client(get_settings())


def get_notification_service(
    db: AsyncSession = Depends(get_db),
    push_client: PushClient | None = Depends(get_push_client),
) -> NotificationService:
    return NotificationService(db=db, push_client=push_client)


def get_lock_registry(request: Request) -> OwnerLockRegistry:
    """
    Per-application registry created in the app factory.
    """
    return request.app.state.booking_locks
