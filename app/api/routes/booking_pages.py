from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException, Path, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies.current_user import get_current_user_id
from app.db.session import get_db
from app.models.booking_page import BookingPage
from app.schemas.booking_page import BookingPageCreate, BookingPageRead, BookingPageUpdate
from app.services.booking_pages import (
    SlugTakenError,
    create_booking_page,
    delete_booking_page,
    get_owner_page,
    list_owner_pages,
    update_booking_page,
)

router = APIRouter(prefix="/booking-pages", tags=["Booking pages"])


async def _owned_page_or_404(db: AsyncSession, owner_id: str, page_id: int) -> BookingPage:
    page = await get_owner_page(db, owner_id, page_id)
    if page is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail="Booking page not found",
        )
    return page


@router.get(
    "",
    response_model=list[BookingPageRead],
    summary="List the caller's booking pages",
    description="Return all booking pages owned by the caller, newest first.",
)
async def list_booking_pages(
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> list[BookingPageRead]:
    pages = await list_owner_pages(db, owner_id)
    return [BookingPageRead.model_validate(p) for p in pages]


@router.post(
    "",
    response_model=BookingPageRead,
    status_code=HTTPStatus.CREATED,
    summary="Create a booking page",
    description=(
        "Create a public booking page for the caller, including its meeting types "
        "and weekly availability (at most one rule per day of week).\n\n"
        "Slugs are unique across all owners and stored lower-cased."
    ),
    responses={
        400: {
            "description": "The slug is already used by another booking page.",
            "content": {
                "application/json": {
                    "example": {"detail": "This URL slug is already taken"}
                }
            },
        },
        401: {"description": "Missing authenticated user."},
    },
)
async def create_page(
    payload: BookingPageCreate,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> BookingPageRead:
    try:
        page = await create_booking_page(db, owner_id, payload)
    except SlugTakenError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc))
    return BookingPageRead.model_validate(page)


@router.get(
    "/{page_id}",
    response_model=BookingPageRead,
    summary="Get one of the caller's booking pages",
    responses={404: {"description": "No booking page with this id belongs to the caller."}},
)
async def get_page(
    page_id: int = Path(..., ge=1, description="Numeric ID of the booking page."),
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> BookingPageRead:
    page = await _owned_page_or_404(db, owner_id, page_id)
    return BookingPageRead.model_validate(page)


@router.patch(
    "/{page_id}",
    response_model=BookingPageRead,
    summary="Partially update a booking page",
    description=(
        "Only fields provided in the request body are modified. Supplied "
        "`meeting_types` / `availability` / `custom_fields` lists replace the stored ones."
    ),
    responses={
        400: {"description": "Attempted to change `slug` to a value that already exists."},
        404: {"description": "No booking page with this id belongs to the caller."},
    },
)
async def update_page(
    page_id: int = Path(..., ge=1, description="Numeric ID of the booking page."),
    payload: BookingPageUpdate | None = None,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> BookingPageRead:
    page = await _owned_page_or_404(db, owner_id, page_id)

    if payload is None:
        # Nothing to update; return current state
        return BookingPageRead.model_validate(page)

    try:
        page = await update_booking_page(db, page, payload)
    except SlugTakenError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc))
    return BookingPageRead.model_validate(page)


@router.delete(
    "/{page_id}",
    status_code=HTTPStatus.NO_CONTENT,
    summary="Delete a booking page",
    responses={404: {"description": "No booking page with this id belongs to the caller."}},
)
async def delete_page(
    page_id: int = Path(..., ge=1, description="Numeric ID of the booking page."),
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> Response:
    page = await _owned_page_or_404(db, owner_id, page_id)
    await delete_booking_page(db, page)
    return Response(status_code=HTTPStatus.NO_CONTENT)
