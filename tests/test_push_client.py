# tests/test_push_client.py
from http import HTTPStatus
from typing import Any, Dict, Optional

import httpx
import pytest

from app.core.config import Settings
from app.schemas.notification import NotificationPayload
from app.services.push_client import PushClient, PushClientError, build_push_client


class _FakeResponse:
    def __init__(self, status_code: int, json_data: Optional[Dict[str, Any]]):
        self.status_code = status_code
        self._json_data = json_data
        self.content = b"" if json_data is None else b"{}"
        # For error messages
        self.text = str(json_data)

    def json(self) -> Dict[str, Any]:
        return self._json_data


class _FakeAsyncClient:
    """
    Minimal stand-in for httpx.AsyncClient used in tests.

    Captures the outgoing request and returns a predictable response
    without real I/O.
    """

    last_request: Dict[str, Any] = {}
    call_count: int = 0
    response = _FakeResponse(HTTPStatus.OK, {"delivered": True})

    def __init__(self, timeout: float | None = None):
        _FakeAsyncClient.last_request = {"timeout": timeout}

    async def __aenter__(self) -> "_FakeAsyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def post(self, url: str, headers=None, json: Any = None, **kwargs) -> _FakeResponse:
        _FakeAsyncClient.last_request.update({"url": url, "headers": headers, "json": json})
        _FakeAsyncClient.call_count += 1
        return self.response


def _payload() -> NotificationPayload:
    return NotificationPayload(
        title="New Meeting Booking",
        body="Alex has booked a meeting with you",
        data={"meeting_id": 1},
    )


@pytest.mark.asyncio
async def test_send_posts_envelope_with_bearer_token(monkeypatch):
    monkeypatch.setattr(httpx, "AsyncClient", _FakeAsyncClient)
    _FakeAsyncClient.call_count = 0

    client = PushClient("https://push.example.com/hook", token="secret", timeout_seconds=3.0)
    result = await client.send("owner-1", _payload())

    assert result == {"delivered": True}
    assert _FakeAsyncClient.call_count == 1

    last = _FakeAsyncClient.last_request
    assert last["url"] == "https://push.example.com/hook"
    assert last["timeout"] == 3.0
    assert last["headers"]["Authorization"] == "Bearer secret"
    assert last["json"]["user_id"] == "owner-1"
    notification = last["json"]["notification"]
    assert notification["title"] == "New Meeting Booking"
    assert notification["data"] == {"meeting_id": 1}
    # None-valued optional fields are not sent
    assert "icon" not in notification


@pytest.mark.asyncio
async def test_send_without_token_has_no_authorization(monkeypatch):
    monkeypatch.setattr(httpx, "AsyncClient", _FakeAsyncClient)

    await PushClient("https://push.example.com/hook").send("owner-1", _payload())

    assert "Authorization" not in _FakeAsyncClient.last_request["headers"]


@pytest.mark.asyncio
async def test_send_returns_none_on_empty_body(monkeypatch):
    class _EmptyClient(_FakeAsyncClient):
        response = _FakeResponse(HTTPStatus.NO_CONTENT, None)

    monkeypatch.setattr(httpx, "AsyncClient", _EmptyClient)

    assert await PushClient("https://push.example.com/hook").send("owner-1", _payload()) is None


@pytest.mark.asyncio
async def test_send_raises_on_rejected_payload(monkeypatch):
    class _RejectingClient(_FakeAsyncClient):
        response = _FakeResponse(HTTPStatus.BAD_REQUEST, {"error": "bad subscription"})

    monkeypatch.setattr(httpx, "AsyncClient", _RejectingClient)

    with pytest.raises(PushClientError):
        await PushClient("https://push.example.com/hook").send("owner-1", _payload())


@pytest.mark.asyncio
async def test_send_wraps_transport_errors(monkeypatch):
    class _UnreachableClient(_FakeAsyncClient):
        async def post(self, url: str, headers=None, json: Any = None, **kwargs):
            raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(httpx, "AsyncClient", _UnreachableClient)

    with pytest.raises(PushClientError):
        await PushClient("https://push.example.com/hook").send("owner-1", _payload())


def test_push_client_requires_url():
    with pytest.raises(ValueError):
        PushClient("")


def test_build_push_client_from_settings():
    assert build_push_client(Settings(PUSH_GATEWAY_URL=None)) is None

    client = build_push_client(
        Settings(PUSH_GATEWAY_URL="https://push.example.com/hook", PUSH_GATEWAY_TOKEN="t")
    )
    assert isinstance(client, PushClient)
    assert client.url.startswith("https://push.example.com/hook")
