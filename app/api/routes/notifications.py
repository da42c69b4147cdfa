from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from app.api.dependencies.current_user import get_current_user_id
from app.api.dependencies.services import get_notification_service
from app.schemas.notification import MarkAllReadResponse, NotificationRead
from app.services.notifications import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get(
    "",
    response_model=list[NotificationRead],
    summary="List the caller's notifications",
    description="Most recent first.",
)
async def list_notifications(
    limit: int = Query(default=20, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> list[NotificationRead]:
    notifications = await service.list_for_user(user_id, limit=limit)
    return [NotificationRead.model_validate(n) for n in notifications]


@router.patch(
    "/read-all",
    response_model=MarkAllReadResponse,
    summary="Mark all of the caller's notifications as read",
)
async def mark_all_read(
    user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> MarkAllReadResponse:
    updated = await service.mark_all_as_read(user_id)
    return MarkAllReadResponse(updated=updated)


@router.patch(
    "/{notification_id}/read",
    response_model=NotificationRead,
    summary="Mark a notification as read",
    responses={404: {"description": "Notification not found for the caller."}},
)
async def mark_read(
    notification_id: int = Path(..., ge=1),
    user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationRead:
    notification = await service.mark_as_read(notification_id, user_id)
    if notification is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail="Notification not found",
        )
    return NotificationRead.model_validate(notification)
