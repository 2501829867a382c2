from datetime import datetime
from decimal import Decimal

from app.models.event import Event, EventRegistration
from app.models.investment import InvestmentDeposit, LongTermInvestment
from app.models.user import Profile
from tests.helpers import auth_headers, db_add


def test_register_and_login(client):
    body = {"name": "New Member", "email": "new.member@kmcc-riyadh.org", "password": "pass1234", "memberId": "KM-9"}
    resp = client.post("/api/user/register", json=body)
    assert resp.status_code == 201
    assert resp.json()["data"]["memberId"] == "KM-9"
    assert "passwordHash" not in resp.json()["data"]

    assert client.post("/api/user/register", json=body).status_code == 400

    resp = client.post("/api/user/login", json={"email": "new.member@kmcc-riyadh.org", "password": "pass1234"})
    assert resp.status_code == 200
    token = resp.json()["data"]["accessToken"]

    resp = client.get("/api/user/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["data"]["email"] == "new.member@kmcc-riyadh.org"

    resp = client.post("/api/user/login", json={"email": "new.member@kmcc-riyadh.org", "password": "wrong-pass"})
    assert resp.status_code == 401


def test_me_requires_valid_token(client):
    assert client.get("/api/user/me").status_code == 401
    resp = client.get("/api/user/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid token"


def test_me_summarises_gold_and_investment(client, program, make_user, lot_for):
    user = make_user("Saver", profile_image=b"\x89PNG")
    db_add(Profile(user_id=user.id, occupation="Engineer"))
    lot = lot_for(user)
    for month in (1, 2):
        client.post("/api/gold/payments", json={"lotId": lot["id"], "year": 2024, "month": month})
    client.post("/api/gold/winners", json={
        "programId": program["id"],
        "winners": [{"lotId": lot["id"], "month": 3, "year": 2024, "prizeAmount": "750"}],
    })
    inv = db_add(LongTermInvestment(user_id=user.id, total_deposited=Decimal("300")))
    db_add(
        InvestmentDeposit(investment_id=inv.id, amount=Decimal("100"), deposit_date=datetime(2024, 1, 1)),
        InvestmentDeposit(investment_id=inv.id, amount=Decimal("200"), deposit_date=datetime(2024, 2, 1)),
    )

    data = client.get("/api/user/me", headers=auth_headers(user)).json()["data"]
    assert data["profileImage"].startswith("data:image/png;base64,")
    assert data["profile"]["occupation"] == "Engineer"

    gold = data["goldPrograms"]
    assert (gold["count"], gold["totalPayments"]) == (1, 2)
    detail = gold["details"][0]
    assert detail["programName"] == "Gold 2024"
    assert (detail["lastPayment"]["month"], detail["hasWon"]) == (2, True)
    assert detail["lastWin"]["prizeAmount"] == 750.0

    investment = data["longTermInvestment"]
    assert investment["totalDeposited"] == 300.0
    assert [p["amount"] for p in investment["cumulativeInvestment"]] == [100.0, 300.0]
    assert investment["lastDeposit"]["amount"] == 200.0


def test_events_and_registration(client, make_user):
    user, other = make_user(), make_user()
    first = db_add(Event(title="Sports day", event_date=datetime(2024, 7, 1, 9, 0)))
    second = db_add(Event(title="Medical camp", event_date=datetime(2024, 6, 25, 9, 0)))
    db_add(Event(title="Old meetup", event_date=datetime(2024, 1, 1), is_finished=True))
    db_add(EventRegistration(event_id=second.id, user_id=other.id, is_attended=True))

    page = client.get("/api/user/events?page=1&limit=10").json()["data"]
    assert page["totalEvents"] == 2
    assert page["totalPages"] == 1
    assert {e["title"] for e in page["events"]} == {"Sports day", "Medical camp"}

    resp = client.post("/api/user/register-event", json={"eventId": first.id}, headers=auth_headers(user))
    assert resp.status_code == 201
    assert resp.json()["data"]["isAttended"] is False

    resp = client.post("/api/user/register-event", json={"eventId": first.id}, headers=auth_headers(user))
    assert resp.status_code == 400
    assert resp.json()["message"] == "You are already registered for this event."

    detail = client.get(f"/api/user/events/{first.id}", headers=auth_headers(user)).json()["data"]
    assert detail["isRegistered"] is True
    assert detail["event"]["totalRegistrations"] == 1
    assert [e["title"] for e in detail["suggestedEvents"]] == ["Medical camp"]

    assert client.get("/api/user/events/999", headers=auth_headers(user)).status_code == 404

    attended = client.get("/api/user/attended-events", headers=auth_headers(other)).json()["data"]
    assert attended["totalAttended"] == 1
    assert attended["events"][0]["title"] == "Medical camp"


def test_health(client):
    assert client.get("/healthz").json() == {"status": "healthy"}
