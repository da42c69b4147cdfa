from functools import lru_cache
from typing import Literal

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global application configuration.

    Values are loaded from environment variables at runtime.

    These settings drive:
    - DB connection
    - Which timezone governs availability bucketing
    - Video link generation for booked meetings
    - Push gateway used for notification delivery
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    APP_NAME: str = "Booking Service"
    APP_ENV: str = Field("local", description="Environment name: local/dev/stage/prod")
    LOG_LEVEL: str = Field("INFO", description="Root log level.")

    DB_URL: str = Field(
        "sqlite+aiosqlite:///./booking.db",
        description="SQLAlchemy-compatible database URL",
    )

    AVAILABILITY_TIMEZONE_MODE: Literal["page", "server"] = Field(
        default="page",
        description=(
            "Timezone used for day-of-week and working-hour comparisons. "
            "'page' uses the booking page's declared timezone, "
            "'server' uses the server's local timezone (legacy behaviour)."
        ),
    )

    VIDEO_LINK_BASE_URL: str = Field(
        default="https://meet.jit.si",
        description="Base URL used to generate links for video meetings.",
    )

    # --- Push gateway ---
    PUSH_GATEWAY_URL: AnyHttpUrl | None = Field(
        default=None,
        description="Webhook endpoint that receives push notification payloads.",
    )
    PUSH_GATEWAY_TOKEN: str | None = Field(
        default=None,
        description="Bearer token sent to the push gateway (if required).",
    )
    PUSH_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="HTTP timeout for push gateway calls.",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached accessor for application settings.

    Using LRU cache ensures settings are read and validated only once,
    while still being easily importable across the app.
    """
    return Settings()
