import asyncio
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.exc import OperationalError

from app.core.config import Settings
from app.db.session import AsyncSessionLocal
from app.models.booking_page import BookingPage
from app.schemas.booking_page import BookingPageCreate
from app.schemas.meeting import AttendeeInfo, BookingRequest, MeetingCreate
from app.services.booking import (
    SlotUnavailableError,
    book_meeting,
    compute_available_slots,
    get_active_booking_page,
    governing_timezone,
)
from app.services.booking_locks import OwnerLockRegistry
from app.services.booking_pages import create_booking_page
from app.services.meetings import create_meeting
from app.services.notifications import NotificationService

UTC = ZoneInfo("UTC")
MONDAY = date(2030, 1, 7)
VIDEO_BASE = "https://meet.example.com"


def _request(hour: int, name: str) -> BookingRequest:
    return BookingRequest(
        meeting_type_id="intro-60",
        start_time=datetime(2030, 1, 7, hour, tzinfo=timezone.utc),
        end_time=datetime(2030, 1, 7, hour + 1, tzinfo=timezone.utc),
        attendee_info=AttendeeInfo(name=name, email=f"{name.lower()}@example.com"),
    )


async def _make_page(db, unique: str, page_payload) -> BookingPage:
    payload = BookingPageCreate(**page_payload(f"svc-{unique}"))
    return await create_booking_page(db, f"svc-owner-{unique}", payload)


@pytest.mark.asyncio
async def test_lock_registry_serializes_same_owner_and_forgets_idle_locks():
    locks = OwnerLockRegistry()
    order: list[str] = []
    first_inside = asyncio.Event()

    async def first():
        async with locks.for_owner("a"):
            order.append("first-in")
            first_inside.set()
            await asyncio.sleep(0.01)
            order.append("first-out")

    async def second():
        await first_inside.wait()
        assert len(locks) == 1
        async with locks.for_owner("a"):
            order.append("second-in")

    await asyncio.gather(first(), second())

    assert order == ["first-in", "first-out", "second-in"]
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_lock_registry_does_not_block_other_owners():
    locks = OwnerLockRegistry()

    async with locks.for_owner("a"):
        async with locks.for_owner("b"):
            assert len(locks) == 2

    assert len(locks) == 0


def test_governing_timezone_modes():
    page = BookingPage(timezone="Europe/Berlin")

    assert governing_timezone(page, Settings(AVAILABILITY_TIMEZONE_MODE="server")) is None
    assert governing_timezone(page, Settings(AVAILABILITY_TIMEZONE_MODE="page")) == ZoneInfo(
        "Europe/Berlin"
    )


def test_governing_timezone_falls_back_to_utc_for_unknown_zone():
    page = BookingPage(timezone="Mars/Olympus_Mons")
    assert governing_timezone(page, Settings(AVAILABILITY_TIMEZONE_MODE="page")) == UTC


@pytest.mark.asyncio
async def test_compute_available_slots_excludes_stored_meeting(db_session, unique, page_payload):
    page = await _make_page(db_session, unique, page_payload)

    await create_meeting(
        db_session,
        page.owner_id,
        MeetingCreate(
            title="Standing 1:1",
            start_time=datetime(2030, 1, 7, 13, tzinfo=timezone.utc),
            end_time=datetime(2030, 1, 7, 14, 30, tzinfo=timezone.utc),
        ),
        video_base_url=VIDEO_BASE,
    )

    slots = await compute_available_slots(db_session, page, MONDAY, 60, UTC)

    assert [s.start.hour for s in slots] == [9, 10, 11, 12, 15, 16]


@pytest.mark.asyncio
async def test_concurrent_bookings_for_same_slot_admit_one(db_session, unique, page_payload):
    """
    Two requests racing for the same slot: the owner lock serializes them,
    so exactly one meeting is created and the other is rejected.
    """
    page = await _make_page(db_session, unique, page_payload)
    locks = OwnerLockRegistry()

    async def attempt(name: str):
        async with AsyncSessionLocal() as db:
            own_page = await get_active_booking_page(db, page.slug)
            return await book_meeting(
                db,
                own_page,
                _request(10, name),
                locks=locks,
                notifier=NotificationService(db),
                video_base_url=VIDEO_BASE,
                tz=UTC,
            )

    results = await asyncio.gather(attempt("Alice"), attempt("Bob"), return_exceptions=True)

    booked = [r for r in results if not isinstance(r, BaseException)]
    rejected = [r for r in results if isinstance(r, SlotUnavailableError)]
    assert len(booked) == 1
    assert len(rejected) == 1
    assert booked[0].meeting_link.startswith(f"{VIDEO_BASE}/")

    slots = await compute_available_slots(db_session, page, MONDAY, 60, UTC)
    assert 10 not in [s.start.hour for s in slots]


@pytest.mark.asyncio
async def test_booking_in_server_mode_uses_local_wall_clock(db_session, unique, page_payload):
    """
    With tz=None naive request times are read as server-local wall clock,
    so 10:00 local is always inside a 09:00-17:00 window.
    """
    page = await _make_page(db_session, unique, page_payload)
    request = BookingRequest(
        meeting_type_id="intro-60",
        start_time=datetime(2030, 1, 7, 10),
        end_time=datetime(2030, 1, 7, 11),
        attendee_info=AttendeeInfo(name="Local", email="local@example.com"),
    )

    meeting = await book_meeting(
        db_session,
        page,
        request,
        locks=OwnerLockRegistry(),
        notifier=NotificationService(db_session),
        video_base_url=VIDEO_BASE,
        tz=None,
    )

    assert meeting.id is not None
    assert meeting.start_time.tzinfo is not None


class _BrokenNotifier:
    def __init__(self) -> None:
        self.calls = 0

    async def send_to_user(self, user_id, payload, notification_type="general"):
        self.calls += 1
        raise OperationalError("INSERT INTO notifications", {}, Exception("database is locked"))


@pytest.mark.asyncio
async def test_booking_survives_notification_storage_failure(db_session, unique, page_payload):
    """
    The meeting is committed before the owner is notified, so a failing
    notification write must not turn the booking into an error.
    """
    page = await _make_page(db_session, unique, page_payload)
    notifier = _BrokenNotifier()

    meeting = await book_meeting(
        db_session,
        page,
        _request(15, "Dana"),
        locks=OwnerLockRegistry(),
        notifier=notifier,
        video_base_url=VIDEO_BASE,
        tz=UTC,
    )

    assert notifier.calls == 1
    assert meeting.id is not None
    assert meeting.title == "Intro call - Dana"
    assert len(meeting.attendees) == 2

    # the rollback after the failed write expires everything else in the session
    await db_session.refresh(page)
    slots = await compute_available_slots(db_session, page, MONDAY, 60, UTC)
    assert 15 not in [s.start.hour for s in slots]
