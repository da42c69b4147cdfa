from __future__ import annotations

import json
import logging
from datetime import date as date_type, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.models.booking_page import BookingPage, MeetingType
from app.models.meeting import Meeting, MeetingAttendee
from app.schemas.availability import AvailableSlot, BookableInterval
from app.schemas.meeting import BookingRequest
from app.services.availability import enumerate_slots, is_available, localize
from app.services.booking_locks import OwnerLockRegistry
from app.services.commitments import load_commitments
from app.services.meetings import assign_video_link
from app.services.notifications import NotificationService, meeting_booked_payload

logger = logging.getLogger(__name__)


class InvalidMeetingTypeError(ValueError):
    """
    Raised when a booking references a meeting type the page does not offer.
    """


class SlotUnavailableError(RuntimeError):
    """
    Raised when the requested interval fails the availability check.
    The caller has to pick another slot; nothing is retried.
    """


def governing_timezone(page: BookingPage, settings: Settings) -> tzinfo | None:
    """
    Timezone used for day-of-week bucketing and working-hour comparison.

    Returns None in "server" mode, meaning the server's local timezone.
    """
    if settings.AVAILABILITY_TIMEZONE_MODE == "server":
        return None
    try:
        return ZoneInfo(page.timezone or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(
            "Booking page %s has unknown timezone %r, falling back to UTC",
            page.id,
            page.timezone,
        )
        return ZoneInfo("UTC")


async def get_active_booking_page(db: AsyncSession, slug: str) -> BookingPage:
    """
    Fetch an active booking page by slug.

    Raises LookupError when no active page uses the slug.
    """
    result = await db.execute(
        select(BookingPage).where(
            BookingPage.slug == slug.strip().lower(),
            BookingPage.is_active.is_(True),
        )
    )
    page = result.scalar_one_or_none()
    if page is None:
        raise LookupError(f"Booking page '{slug}' not found")
    return page


def resolve_meeting_type(page: BookingPage, meeting_type_id: str) -> MeetingType:
    for meeting_type in page.meeting_types:
        if meeting_type.type_id == meeting_type_id and meeting_type.is_active:
            return meeting_type
    raise InvalidMeetingTypeError("Invalid meeting type")


async def compute_available_slots(
    db: AsyncSession,
    page: BookingPage,
    on_date: date_type,
    duration_minutes: int,
    tz: tzinfo | None,
) -> list[AvailableSlot]:
    """
    Enumerate bookable slots on `on_date` for the page's owner.

    Commitments are read once for the whole day (plus the slot duration, so
    slots near the end of the window are checked against later meetings).
    """
    day_start = localize(datetime.combine(on_date, time.min), tz)
    day_end = day_start + timedelta(days=1, minutes=duration_minutes)

    commitments = await load_commitments(db, page.owner_id, day_start, day_end)
    return enumerate_slots(page.availability, commitments, on_date, duration_minutes, tz)


async def book_meeting(
    db: AsyncSession,
    page: BookingPage,
    request: BookingRequest,
    *,
    locks: OwnerLockRegistry,
    notifier: NotificationService,
    video_base_url: str,
    tz: tzinfo | None,
) -> Meeting:
    """
    Book a meeting on `page` for the requested interval.

    Steps
    -----
    1) Resolve the meeting type (InvalidMeetingTypeError if unknown/inactive).
    2) Under the owner's lock: load overlapping commitments, run the
       availability check (SlotUnavailableError on failure) and insert the
       meeting with the owner and the attendee as participants.
    3) Notify the owner about the new booking. A failure to store the
       notification is logged; the meeting stays booked.
    """
    meeting_type = resolve_meeting_type(page, request.meeting_type_id)

    candidate = BookableInterval(
        start=localize(request.start_time, tz),
        end=localize(request.end_time, tz),
    )
    attendee = request.attendee_info

    async with locks.for_owner(page.owner_id):
        commitments = await load_commitments(
            db, page.owner_id, candidate.start, candidate.end
        )
        if not is_available(page.availability, commitments, candidate, tz):
            logger.info(
                "Rejected booking on %s for %s - %s: slot not available",
                page.slug,
                candidate.start.isoformat(),
                candidate.end.isoformat(),
            )
            raise SlotUnavailableError("Selected time slot is not available")

        meeting = Meeting(
            title=f"{meeting_type.name} - {attendee.name}",
            description=f"Meeting booked through {page.title}",
            start_time=candidate.start,
            end_time=candidate.end,
            category="meeting",
            meeting_type="video",
            created_by=page.owner_id,
            booking_page_id=page.id,
            notes=f"Custom fields: {json.dumps(request.custom_fields, default=str)}",
        )
        meeting.attendees = [
            MeetingAttendee(
                user_id=page.owner_id,
                email=page.owner_email or "",
                name=page.owner_name or page.owner_id,
                status="accepted",
            ),
            MeetingAttendee(
                user_id=None,
                email=attendee.email,
                name=attendee.name,
                status="pending",
            ),
        ]
        assign_video_link(meeting, video_base_url)

        db.add(meeting)
        await db.commit()
        await db.refresh(meeting)

    logger.info(
        "Meeting %s booked on %s by %s (%s)",
        meeting.id,
        page.slug,
        attendee.email,
        meeting_type.type_id,
    )

    meeting_id = meeting.id
    try:
        await notifier.send_to_user(
            page.owner_id,
            meeting_booked_payload(meeting_id, attendee.name),
            notification_type="meeting_booking",
        )
    except SQLAlchemyError:
        logger.exception(
            "Could not store booking notification for meeting %s; booking kept",
            meeting_id,
        )
        await db.rollback()
        await db.refresh(meeting)
    return meeting
