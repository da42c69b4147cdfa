from datetime import date as date_type
from http import HTTPStatus
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies.services import get_lock_registry, get_notification_service
from app.core.config import get_settings
from app.db.session import get_db
from app.schemas.availability import AvailabilityResponse
from app.schemas.booking_page import BookingPageRead
from app.schemas.meeting import BookingRequest, MeetingRead
from app.services.booking import (
    InvalidMeetingTypeError,
    SlotUnavailableError,
    book_meeting,
    compute_available_slots,
    get_active_booking_page,
    governing_timezone,
)
from app.services.booking_locks import OwnerLockRegistry
from app.services.notifications import NotificationService

router = APIRouter(prefix="/bookings", tags=["Public booking"])

SlugPath = Annotated[
    str,
    Path(description="Public URL slug of the booking page.", examples=["jane-doe"]),
]


async def _active_page_or_404(db: AsyncSession, slug: str):
    try:
        return await get_active_booking_page(db, slug)
    except LookupError:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail="Booking page not found",
        )


@router.get(
    "/{slug}",
    response_model=BookingPageRead,
    summary="Get a public booking page",
    description="Return an active booking page by slug. Inactive pages are reported as not found.",
    responses={404: {"description": "No active booking page uses this slug."}},
)
async def get_public_booking_page(
    slug: SlugPath,
    db: AsyncSession = Depends(get_db),
) -> BookingPageRead:
    page = await _active_page_or_404(db, slug)
    return BookingPageRead.model_validate(page)


@router.get(
    "/{slug}/availability",
    response_model=AvailabilityResponse,
    summary="List bookable slots for a day",
    description=(
        "Enumerate bookable slots on `date` for the booking page's owner.\n\n"
        "- Candidate slots start on every whole hour of the day's working window.\n"
        "- A slot is offered only if it ends within the window (hour granularity) "
        "and overlaps none of the owner's existing meetings.\n"
        "- Days without an availability rule, or with `is_available=false`, "
        "return an empty list."
    ),
    responses={
        200: {
            "description": "Slots computed successfully.",
            "content": {
                "application/json": {
                    "example": {
                        "available_slots": [
                            {
                                "start": "2025-01-06T09:00:00Z",
                                "end": "2025-01-06T10:00:00Z",
                                "available": True,
                            }
                        ]
                    }
                }
            },
        },
        404: {"description": "No active booking page uses this slug."},
    },
)
async def get_available_slots(
    slug: SlugPath,
    date: date_type = Query(
        ...,
        description="Day to compute slots for, in ISO format (YYYY-MM-DD).",
        examples=["2025-01-06"],
    ),
    duration: int = Query(
        ...,
        ge=1,
        le=24 * 60,
        description="Slot length in minutes.",
        examples=[60],
    ),
    db: AsyncSession = Depends(get_db),
) -> AvailabilityResponse:
    page = await _active_page_or_404(db, slug)
    tz = governing_timezone(page, get_settings())

    slots = await compute_available_slots(db, page, date, duration, tz)
    return AvailabilityResponse(available_slots=slots)


@router.post(
    "/{slug}/book",
    response_model=MeetingRead,
    status_code=HTTPStatus.CREATED,
    summary="Book a meeting",
    description=(
        "Book a slot on a public booking page.\n\n"
        "The request is rejected when the meeting type is unknown, or when the "
        "interval falls outside the owner's working hours or overlaps an existing "
        "meeting. A rejected slot is not retried; pick another one."
    ),
    responses={
        400: {
            "description": "Unknown or inactive meeting type.",
            "content": {"application/json": {"example": {"detail": "Invalid meeting type"}}},
        },
        404: {"description": "No active booking page uses this slug."},
        409: {
            "description": "The requested slot is not available.",
            "content": {
                "application/json": {
                    "example": {"detail": "Selected time slot is not available"}
                }
            },
        },
    },
)
async def create_booking(
    payload: BookingRequest,
    slug: SlugPath,
    db: AsyncSession = Depends(get_db),
    locks: OwnerLockRegistry = Depends(get_lock_registry),
    notifier: NotificationService = Depends(get_notification_service),
) -> MeetingRead:
    """
    Validate, check availability, create the meeting and notify the owner.
    """
    page = await _active_page_or_404(db, slug)
    settings = get_settings()

    try:
        meeting = await book_meeting(
            db,
            page,
            payload,
            locks=locks,
            notifier=notifier,
            video_base_url=settings.VIDEO_LINK_BASE_URL,
            tz=governing_timezone(page, settings),
        )
    except InvalidMeetingTypeError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc))
    except SlotUnavailableError as exc:
        raise HTTPException(status_code=HTTPStatus.CONFLICT, detail=str(exc))

    return MeetingRead.model_validate(meeting)
