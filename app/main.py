import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.routes import booking_pages, bookings, health, meetings, notifications
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import init_db
from app.services.booking_locks import OwnerLockRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover
    await init_db()
    logger.info("Database schema ready")
    yield


def create_app() -> FastAPI:
    """
    Application factory for the booking service.
    """
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Backend service for public booking pages: weekly availability,\n"
            "slot enumeration, conflict-checked meeting booking and owner\n"
            "notifications."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Bookings against the same owner are serialized through these locks
    app.state.booking_locks = OwnerLockRegistry()

    # Routers
    app.include_router(health.router)
    app.include_router(booking_pages.router)
    app.include_router(bookings.router)
    app.include_router(meetings.router)
    app.include_router(notifications.router)

    logger.info(
        "%s starting (env=%s, availability timezone mode=%s)",
        settings.APP_NAME,
        settings.APP_ENV,
        settings.AVAILABILITY_TIMEZONE_MODE,
    )
    return app


app = create_app()
