import asyncio

from sqlalchemy import select

from app.models.notification import Notification
from app.models.user import User
from app.services import notify_service
from tests.helpers import auth_headers, db_add, db_scalars


def test_register_token(client, make_user):
    user = make_user("Phone")
    resp = client.post("/api/notifications/register-token", json={"userId": user.id, "token": "fcm-abc"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["user"]["name"] == "Phone"
    assert data["subscribed"] is False
    assert db_scalars(select(User.fcm_token).where(User.id == user.id)) == ["fcm-abc"]

    resp = client.post("/api/notifications/register-token", json={"userId": 999, "token": "x"})
    assert resp.status_code == 404


def test_global_notification_is_admin_only(client, make_user, monkeypatch):
    calls = []

    async def fake_send(title, body, data=None, topic=None):
        calls.append((title, body, data))

    monkeypatch.setattr("app.routers.notification.send_global_notification", fake_send)
    member, admin = make_user(), make_user(admin=True)
    body = {"title": "Eid", "body": "Eid Mubarak"}

    assert client.post("/api/notifications/global", json=body).status_code == 401
    assert client.post("/api/notifications/global", json=body, headers=auth_headers(member)).status_code == 403

    resp = client.post("/api/notifications/global", json=body, headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.json()["data"]["userId"] is None
    assert calls == [("Eid", "Eid Mubarak", {"type": "admin"})]
    assert len(db_scalars(select(Notification))) == 1


def test_user_notifications_and_mark_read(client, make_user):
    me, other = make_user(), make_user()
    mine = db_add(Notification(user_id=me.id, title="Paid", body="June received"))
    db_add(Notification(user_id=other.id, title="Other", body="not mine"))

    data = client.get("/api/notifications/user", headers=auth_headers(me)).json()["data"]
    assert [n["title"] for n in data["notifications"]] == ["Paid"]

    theirs = db_scalars(select(Notification).where(Notification.user_id == other.id))[0]
    resp = client.patch(f"/api/notifications/{theirs.id}/read", headers=auth_headers(me))
    assert resp.status_code == 403

    resp = client.patch(f"/api/notifications/{mine.id}/read", headers=auth_headers(me))
    assert resp.status_code == 200
    assert db_scalars(select(Notification.is_read).where(Notification.id == mine.id)) == [True]

    resp = client.patch("/api/notifications/999/read", headers=auth_headers(me))
    assert resp.status_code == 404


def test_admin_lists_everything(client, make_user):
    me, admin = make_user("Me"), make_user(admin=True)
    db_add(Notification(user_id=me.id, title="A", body="a"), Notification(title="B", body="b"))

    data = client.get("/api/notifications/admin/all", headers=auth_headers(admin)).json()["data"]
    by_title = {n["title"]: n for n in data["notifications"]}
    assert by_title["A"]["user"]["name"] == "Me"
    assert by_title["B"]["user"] is None


def test_push_errors_are_swallowed(monkeypatch):
    def boom():
        raise RuntimeError("bad credentials")

    monkeypatch.setattr(notify_service, "get_firebase_app", boom)
    assert asyncio.run(notify_service.send_global_notification("t", "b")) is None
    assert asyncio.run(notify_service.subscribe_to_topic("tok")) is False
