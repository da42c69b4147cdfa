from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from app.core.config import Settings
from app.schemas.notification import NotificationPayload


class PushClientError(RuntimeError):
    """
    Raised when the push gateway rejects a payload or cannot be reached.
    """


class PushClient:
    """
    Minimal client for an HTTP push gateway (web-push relay, Slack-style
    incoming webhook, etc.).

    Responsibilities
    ----------------
    - POST a JSON envelope `{user_id, notification}` to the configured URL.
    - Attach a bearer token when one is configured.
    - Avoid leaking HTTP client details into the rest of the codebase.

    Instances are built explicitly (see `build_push_client`) and passed to
    the services that need them; there is no process-wide instance.
    """

    def __init__(
        self,
        url: str,
        token: str | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        if not url:
            raise ValueError("url is required")

        self._url = url
        self._token = token
        self._timeout_seconds = timeout_seconds

    @property
    def url(self) -> str:
        return self._url

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def send(
        self,
        user_id: str,
        payload: NotificationPayload,
    ) -> Optional[Dict[str, Any]]:
        """
        Deliver a notification payload for `user_id`.

        Returns the gateway's JSON response when it sends one.
        Raises PushClientError on transport errors or non-2xx responses.
        """
        body = {
            "user_id": user_id,
            "notification": payload.model_dump(mode="json", exclude_none=True),
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                resp = await client.post(self._url, headers=self._headers(), json=body)
        except httpx.HTTPError as exc:
            raise PushClientError(f"Push gateway unreachable: {exc}") from exc

        if resp.status_code // 100 != 2:
            raise PushClientError(
                f"Push gateway rejected payload (status={resp.status_code}): {resp.text}"
            )

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return None


def build_push_client(settings: Settings) -> PushClient | None:
    """
    Construct a PushClient from settings, or None when push is not configured.
    """
    if not settings.PUSH_GATEWAY_URL:
        return None
    return PushClient(
        url=str(settings.PUSH_GATEWAY_URL),
        token=settings.PUSH_GATEWAY_TOKEN,
        timeout_seconds=settings.PUSH_TIMEOUT_SECONDS,
    )
