from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.meeting import Meeting, MeetingAttendee
from app.schemas.availability import ExistingCommitment


def owner_meetings_stmt(owner_id: str):
    """
    Meetings the owner created or is listed on as an attendee.
    """
    attendee_ids = select(MeetingAttendee.meeting_id).where(
        MeetingAttendee.user_id == owner_id
    )
    return select(Meeting).where(
        or_(
            Meeting.created_by == owner_id,
            Meeting.id.in_(attendee_ids),
        )
    )


async def load_commitments(
    db: AsyncSession,
    owner_id: str,
    window_start: datetime,
    window_end: datetime,
) -> list[ExistingCommitment]:
    """
    Fetch the owner's commitments overlapping [window_start, window_end).

    Uses the same half-open overlap rule as the conflict checker:
    `meeting.start < window_end AND meeting.end > window_start`.
    """
    stmt = (
        owner_meetings_stmt(owner_id)
        .where(
            and_(
                Meeting.start_time < window_end,
                Meeting.end_time > window_start,
            )
        )
        .order_by(Meeting.start_time.asc())
    )

    result = await db.execute(stmt)
    meetings = result.scalars().all()

    return [
        ExistingCommitment(owner_id=owner_id, start=m.start_time, end=m.end_time)
        for m in meetings
    ]
