from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking_page import AvailabilityRule, BookingPage, MeetingType
from app.schemas.availability import WeeklyAvailabilityRule
from app.schemas.booking_page import (
    BookingPageCreate,
    BookingPageUpdate,
    MeetingTypeBase,
)

logger = logging.getLogger(__name__)


class SlugTakenError(ValueError):
    """
    Raised when a booking page slug is already used by another page.
    """


def _meeting_type_rows(types: list[MeetingTypeBase]) -> list[MeetingType]:
    return [MeetingType(**t.model_dump()) for t in types]


def _availability_rows(rules: list[WeeklyAvailabilityRule]) -> list[AvailabilityRule]:
    return [AvailabilityRule(**r.model_dump()) for r in rules]


async def _slug_exists(db: AsyncSession, slug: str) -> bool:
    result = await db.execute(select(BookingPage.id).where(BookingPage.slug == slug))
    return result.scalar_one_or_none() is not None


async def list_owner_pages(db: AsyncSession, owner_id: str) -> list[BookingPage]:
    stmt = (
        select(BookingPage)
        .where(BookingPage.owner_id == owner_id)
        .order_by(BookingPage.created_at.desc(), BookingPage.id.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_owner_page(
    db: AsyncSession,
    owner_id: str,
    page_id: int,
) -> BookingPage | None:
    result = await db.execute(
        select(BookingPage).where(
            BookingPage.id == page_id,
            BookingPage.owner_id == owner_id,
        )
    )
    return result.scalar_one_or_none()


async def create_booking_page(
    db: AsyncSession,
    owner_id: str,
    payload: BookingPageCreate,
) -> BookingPage:
    """
    Create a booking page with its meeting types and weekly availability.

    Enforces uniqueness of `slug` across all owners.
    """
    if await _slug_exists(db, payload.slug):
        raise SlugTakenError("This URL slug is already taken")

    page = BookingPage(
        owner_id=owner_id,
        owner_name=payload.owner_name,
        owner_email=payload.owner_email,
        slug=payload.slug,
        title=payload.title,
        description=payload.description,
        timezone=payload.timezone,
        is_active=payload.is_active,
        custom_fields=[cf.model_dump() for cf in payload.custom_fields],
        settings=payload.settings.model_dump(),
    )
    page.meeting_types = _meeting_type_rows(payload.meeting_types)
    page.availability = _availability_rows(payload.availability)

    db.add(page)
    await db.commit()
    await db.refresh(page)
    logger.info("Booking page %s (%s) created for owner %s", page.id, page.slug, owner_id)
    return page


async def update_booking_page(
    db: AsyncSession,
    page: BookingPage,
    payload: BookingPageUpdate,
) -> BookingPage:
    """
    Apply partial updates to a booking page.

    If `slug` is changed, uniqueness is enforced. Supplied nested lists
    replace the stored ones.
    """
    update_data = payload.model_dump(
        exclude_unset=True,
        exclude={"meeting_types", "availability", "custom_fields", "settings"},
    )

    new_slug = update_data.get("slug")
    if new_slug and new_slug != page.slug and await _slug_exists(db, new_slug):
        raise SlugTakenError("This URL slug is already taken")

    for field, value in update_data.items():
        if value is None and field in ("slug", "title", "timezone", "is_active"):
            continue
        setattr(page, field, value)

    if payload.custom_fields is not None:
        page.custom_fields = [cf.model_dump() for cf in payload.custom_fields]
    if payload.settings is not None:
        page.settings = payload.settings.model_dump()

    # Old rows must be gone before new ones are inserted, otherwise the
    # per-page unique constraints would trip during the flush.
    if payload.meeting_types is not None:
        page.meeting_types.clear()
        await db.flush()
        page.meeting_types = _meeting_type_rows(payload.meeting_types)
    if payload.availability is not None:
        page.availability.clear()
        await db.flush()
        page.availability = _availability_rows(payload.availability)

    await db.commit()
    await db.refresh(page)
    return page


async def delete_booking_page(db: AsyncSession, page: BookingPage) -> None:
    await db.delete(page)
    await db.commit()
    logger.info("Booking page %s deleted", page.id)
