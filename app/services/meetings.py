from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.types import utcnow
from app.models.meeting import Meeting, MeetingAttendee
from app.schemas.meeting import AttendeeIn, MeetingCreate, MeetingUpdate
from app.services.commitments import owner_meetings_stmt

logger = logging.getLogger(__name__)

_CLEARABLE_FIELDS = {"description", "location", "meeting_link", "notes", "agenda"}

RESPONSE_STATUSES = ("accepted", "declined", "tentative")


def assign_video_link(meeting: Meeting, base_url: str) -> None:
    """
    Give video meetings without a link a generated room URL.
    """
    if meeting.meeting_type != "video" or meeting.meeting_link:
        return
    code = uuid4().hex[-8:]
    meeting.meeting_code = code
    meeting.meeting_link = f"{base_url.rstrip('/')}/{code}"


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _build_attendees(attendees: list[AttendeeIn]) -> list[MeetingAttendee]:
    return [
        MeetingAttendee(
            user_id=a.user_id,
            email=a.email,
            name=a.name,
            status=a.status,
        )
        for a in attendees
    ]


async def list_meetings(
    db: AsyncSession,
    user_id: str,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> list[Meeting]:
    """
    Meetings visible to the user (creator or attendee), ordered by start.

    When both bounds are given, only meetings starting inside them are returned.
    """
    stmt = owner_meetings_stmt(user_id)
    if start_date is not None and end_date is not None:
        stmt = stmt.where(
            and_(
                Meeting.start_time >= start_date,
                Meeting.start_time <= end_date,
            )
        )
    result = await db.execute(stmt.order_by(Meeting.start_time.asc(), Meeting.id.asc()))
    return list(result.scalars().all())


async def list_upcoming_meetings(
    db: AsyncSession,
    user_id: str,
    days: int = 7,
    now: datetime | None = None,
) -> list[Meeting]:
    """
    Meetings visible to the user starting between now and `days` from now.
    """
    now = now or utcnow()
    stmt = (
        owner_meetings_stmt(user_id)
        .where(
            and_(
                Meeting.start_time >= now,
                Meeting.start_time <= now + timedelta(days=days),
            )
        )
        .order_by(Meeting.start_time.asc(), Meeting.id.asc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_visible_meeting(
    db: AsyncSession,
    user_id: str,
    meeting_id: int,
) -> Meeting | None:
    stmt = owner_meetings_stmt(user_id).where(Meeting.id == meeting_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def create_meeting(
    db: AsyncSession,
    user_id: str,
    payload: MeetingCreate,
    video_base_url: str,
) -> Meeting:
    data = payload.model_dump(exclude={"attendees"})
    meeting = Meeting(created_by=user_id, **data)
    meeting.attendees = _build_attendees(payload.attendees)
    assign_video_link(meeting, video_base_url)

    db.add(meeting)
    await db.commit()
    await db.refresh(meeting)
    logger.info("Meeting %s created by %s", meeting.id, user_id)
    return meeting


async def update_meeting(
    db: AsyncSession,
    meeting: Meeting,
    payload: MeetingUpdate,
    video_base_url: str,
) -> Meeting:
    """
    Apply a partial update.

    Raises ValueError when the resulting interval would be empty or inverted.
    """
    update_data = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True, exclude={"attendees"}).items()
        if value is not None or field in _CLEARABLE_FIELDS
    }

    new_start = _as_utc(update_data.get("start_time", meeting.start_time))
    new_end = _as_utc(update_data.get("end_time", meeting.end_time))
    if new_start is None or new_end is None:
        raise ValueError("start_time and end_time cannot be cleared")
    if new_end <= new_start:
        raise ValueError("end_time must be after start_time")

    for field, value in update_data.items():
        setattr(meeting, field, value)

    if payload.attendees is not None:
        meeting.attendees = _build_attendees(payload.attendees)

    assign_video_link(meeting, video_base_url)

    await db.commit()
    await db.refresh(meeting)
    return meeting


async def delete_meeting(db: AsyncSession, meeting: Meeting) -> None:
    await db.delete(meeting)
    await db.commit()
    logger.info("Meeting %s deleted", meeting.id)


async def respond_to_meeting(
    db: AsyncSession,
    user_id: str,
    meeting_id: int,
    status: str,
) -> Meeting:
    """
    Record the caller's answer to an invitation.

    Raises ValueError for a status other than accepted/declined/tentative,
    and LookupError when the meeting is not visible to the caller or the
    caller is not on its attendee list.
    """
    if status not in RESPONSE_STATUSES:
        raise ValueError("Invalid status. Must be accepted, declined, or tentative")

    meeting = await get_visible_meeting(db, user_id, meeting_id)
    if meeting is None:
        raise LookupError("Meeting not found")

    attendee = next((a for a in meeting.attendees if a.user_id == user_id), None)
    if attendee is None:
        raise LookupError("You are not invited to this meeting")

    attendee.status = status
    attendee.responded_at = utcnow()

    await db.commit()
    await db.refresh(meeting)
    logger.info("User %s %s meeting %s", user_id, status, meeting_id)
    return meeting
