from http import HTTPStatus

import pytest

from app.schemas.notification import NotificationPayload
from app.services.notifications import NotificationService, meeting_booked_payload
from app.services.push_client import PushClientError


def _headers(user_id: str) -> dict:
    return {"X-User-Id": user_id}


def _book(client, page_payload, unique: str, owner: str, hour: int) -> None:
    slug = f"notify-{unique}-{hour}"
    assert (
        client.post("/booking-pages", json=page_payload(slug), headers=_headers(owner)).status_code
        == HTTPStatus.CREATED
    )
    resp = client.post(
        f"/bookings/{slug}/book",
        json={
            "meeting_type_id": "intro-60",
            "start_time": f"2030-01-08T{hour:02d}:00:00Z",
            "end_time": f"2030-01-08T{hour + 1:02d}:00:00Z",
            "attendee_info": {"name": f"Guest {hour}", "email": "guest@example.com"},
        },
    )
    assert resp.status_code == HTTPStatus.CREATED


def test_mark_single_and_all_read(client, unique, page_payload):
    owner = f"notified-{unique}"
    _book(client, page_payload, unique, owner, 9)
    _book(client, page_payload, unique, owner, 11)

    listed = client.get("/notifications", headers=_headers(owner)).json()
    assert len(listed) == 2
    assert all(n["is_read"] is False for n in listed)
    assert {n["message"] for n in listed} == {
        "Guest 9 has booked a meeting with you",
        "Guest 11 has booked a meeting with you",
    }

    first_id = listed[0]["id"]
    read = client.patch(f"/notifications/{first_id}/read", headers=_headers(owner))
    assert read.status_code == HTTPStatus.OK
    assert read.json()["is_read"] is True

    rest = client.patch("/notifications/read-all", headers=_headers(owner))
    assert rest.status_code == HTTPStatus.OK
    assert rest.json() == {"updated": 1}

    again = client.patch("/notifications/read-all", headers=_headers(owner))
    assert again.json() == {"updated": 0}


def test_list_respects_limit(client, unique, page_payload):
    owner = f"limited-{unique}"
    _book(client, page_payload, unique, owner, 13)
    _book(client, page_payload, unique, owner, 15)

    limited = client.get("/notifications", params={"limit": 1}, headers=_headers(owner))
    assert limited.status_code == HTTPStatus.OK
    assert len(limited.json()) == 1

    too_many = client.get("/notifications", params={"limit": 500}, headers=_headers(owner))
    assert too_many.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_cannot_mark_someone_elses_notification(client, unique, page_payload):
    owner = f"private-{unique}"
    _book(client, page_payload, unique, owner, 10)
    notification_id = client.get("/notifications", headers=_headers(owner)).json()[0]["id"]

    resp = client.patch(
        f"/notifications/{notification_id}/read", headers=_headers(f"other-{unique}")
    )
    assert resp.status_code == HTTPStatus.NOT_FOUND

    assert client.get("/notifications", headers=_headers(f"other-{unique}")).json() == []


class _FailingPushClient:
    def __init__(self) -> None:
        self.calls = 0

    async def send(self, user_id: str, payload: NotificationPayload):
        self.calls += 1
        raise PushClientError("gateway down")


class _RecordingPushClient:
    def __init__(self) -> None:
        self.sent: list[tuple[str, NotificationPayload]] = []

    async def send(self, user_id: str, payload: NotificationPayload):
        self.sent.append((user_id, payload))
        return {"delivered": True}


@pytest.mark.asyncio
async def test_push_failure_keeps_stored_notification(db_session, unique):
    push = _FailingPushClient()
    service = NotificationService(db_session, push_client=push)

    notification = await service.send_to_user(
        f"user-{unique}", meeting_booked_payload(42, "Alex"), notification_type="meeting_booking"
    )

    assert push.calls == 1
    assert notification.id is not None
    stored = await service.list_for_user(f"user-{unique}")
    assert [n.id for n in stored] == [notification.id]
    assert stored[0].data == {"meeting_id": 42, "type": "meeting_booking"}


@pytest.mark.asyncio
async def test_push_client_receives_payload(db_session, unique):
    push = _RecordingPushClient()
    service = NotificationService(db_session, push_client=push)

    await service.send_to_user(f"user-{unique}", meeting_booked_payload(7, "Sam"))

    assert len(push.sent) == 1
    user_id, payload = push.sent[0]
    assert user_id == f"user-{unique}"
    assert payload.title == "New Meeting Booking"
    assert payload.body == "Sam has booked a meeting with you"
    assert payload.actions[0].action == "view"
