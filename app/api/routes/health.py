from datetime import datetime, timezone
from http import HTTPStatus
from typing import Literal

from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from app.core.config import get_settings
from app.db.session import check_database

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"] = Field(
        ...,
        description="`degraded` when the database cannot be reached.",
        examples=["ok"],
    )
    app_name: str = Field(..., examples=["Booking Service"])
    environment: str = Field(..., examples=["local"])
    database: Literal["ok", "unreachable"]
    availability_timezone_mode: Literal["page", "server"] = Field(
        ...,
        description="Which timezone buckets availability rules by day and hour.",
    )
    push_enabled: bool = Field(
        ...,
        description="Whether booking notifications are relayed to a push gateway.",
    )
    timestamp_utc: datetime


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health",
    description=(
        "Report whether bookings can be served: the database must answer a "
        "trivial query. Also echoes the availability timezone mode and whether "
        "push delivery is configured, so a deployment can be checked at a glance.\n\n"
        "Returns 503 with `status=degraded` when the database is unreachable."
    ),
    responses={503: {"description": "Database unreachable."}},
)
async def health_check(response: Response) -> HealthResponse:
    settings = get_settings()
    database_ok = await check_database()
    if not database_ok:
        response.status_code = HTTPStatus.SERVICE_UNAVAILABLE

    return HealthResponse(
        status="ok" if database_ok else "degraded",
        app_name=settings.APP_NAME,
        environment=settings.APP_ENV,
        database="ok" if database_ok else "unreachable",
        availability_timezone_mode=settings.AVAILABILITY_TIMEZONE_MODE,
        push_enabled=settings.PUSH_GATEWAY_URL is not None,
        timestamp_utc=datetime.now(tz=timezone.utc),
    )
