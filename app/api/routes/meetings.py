from datetime import datetime
from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies.current_user import get_current_user_id
from app.core.config import get_settings
from app.db.session import get_db
from app.models.meeting import Meeting
from app.schemas.meeting import MeetingCreate, MeetingRead, MeetingResponseIn, MeetingUpdate
from app.services.meetings import (
    create_meeting,
    delete_meeting,
    get_visible_meeting,
    list_meetings,
    list_upcoming_meetings,
    respond_to_meeting,
    update_meeting,
)

router = APIRouter(prefix="/meetings", tags=["Meetings"])


async def _meeting_or_404(
    db: AsyncSession,
    user_id: str,
    meeting_id: int,
    *,
    owned: bool = False,
) -> Meeting:
    """
    Fetch a meeting visible to the user. With `owned=True` only the creator
    qualifies; attendees get the same 404 as strangers.
    """
    meeting = await get_visible_meeting(db, user_id, meeting_id)
    if meeting is None or (owned and meeting.created_by != user_id):
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail="Meeting not found",
        )
    return meeting


@router.get(
    "",
    response_model=list[MeetingRead],
    summary="List the caller's meetings",
    description=(
        "Return meetings the caller created or attends, ordered by start time.\n\n"
        "When both `start_date` and `end_date` are given, only meetings starting "
        "inside that range are returned."
    ),
)
async def get_meetings(
    start_date: datetime | None = Query(default=None, examples=["2025-01-06T00:00:00Z"]),
    end_date: datetime | None = Query(default=None, examples=["2025-01-13T00:00:00Z"]),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> list[MeetingRead]:
    meetings = await list_meetings(db, user_id, start_date, end_date)
    return [MeetingRead.model_validate(m) for m in meetings]


@router.post(
    "",
    response_model=MeetingRead,
    status_code=HTTPStatus.CREATED,
    summary="Create a meeting",
)
async def post_meeting(
    payload: MeetingCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MeetingRead:
    meeting = await create_meeting(
        db, user_id, payload, video_base_url=get_settings().VIDEO_LINK_BASE_URL
    )
    return MeetingRead.model_validate(meeting)


@router.get(
    "/upcoming",
    response_model=list[MeetingRead],
    summary="List the caller's upcoming meetings",
    description=(
        "Meetings the caller created or attends that start between now and "
        "`days` days ahead, earliest first."
    ),
)
async def get_upcoming_meetings(
    days: int = Query(default=7, ge=1, le=365, description="How many days ahead to look."),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> list[MeetingRead]:
    meetings = await list_upcoming_meetings(db, user_id, days=days)
    return [MeetingRead.model_validate(m) for m in meetings]


@router.get(
    "/{meeting_id}",
    response_model=MeetingRead,
    summary="Get a meeting",
    responses={404: {"description": "Meeting not found or not visible to the caller."}},
)
async def get_meeting(
    meeting_id: int = Path(..., ge=1),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MeetingRead:
    meeting = await _meeting_or_404(db, user_id, meeting_id)
    return MeetingRead.model_validate(meeting)


@router.patch(
    "/{meeting_id}",
    response_model=MeetingRead,
    summary="Partially update a meeting",
    responses={
        404: {"description": "Meeting not found or not created by the caller."},
        422: {"description": "Resulting interval is empty or inverted."},
    },
)
async def patch_meeting(
    payload: MeetingUpdate,
    meeting_id: int = Path(..., ge=1),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MeetingRead:
    meeting = await _meeting_or_404(db, user_id, meeting_id, owned=True)
    try:
        meeting = await update_meeting(
            db, meeting, payload, video_base_url=get_settings().VIDEO_LINK_BASE_URL
        )
    except ValueError as exc:
        raise HTTPException(status_code=HTTPStatus.UNPROCESSABLE_ENTITY, detail=str(exc))
    return MeetingRead.model_validate(meeting)


@router.post(
    "/{meeting_id}/respond",
    response_model=MeetingRead,
    summary="Respond to a meeting invitation",
    description=(
        "Set the caller's attendee status to `accepted`, `declined` or `tentative`. "
        "Only attendees registered with the caller's user id can respond."
    ),
    responses={
        400: {"description": "Unsupported status value."},
        404: {"description": "Meeting not found, or the caller is not invited."},
    },
)
async def respond_meeting(
    payload: MeetingResponseIn,
    meeting_id: int = Path(..., ge=1),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MeetingRead:
    try:
        meeting = await respond_to_meeting(db, user_id, meeting_id, payload.status)
    except ValueError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=str(exc))
    return MeetingRead.model_validate(meeting)


@router.delete(
    "/{meeting_id}",
    status_code=HTTPStatus.NO_CONTENT,
    summary="Delete a meeting",
    responses={404: {"description": "Meeting not found or not created by the caller."}},
)
async def remove_meeting(
    meeting_id: int = Path(..., ge=1),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> Response:
    meeting = await _meeting_or_404(db, user_id, meeting_id, owned=True)
    await delete_meeting(db, meeting)
    return Response(status_code=HTTPStatus.NO_CONTENT)
