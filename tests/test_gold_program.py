import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.models.gold import ACTIVE_SLOT, GoldProgram
from app.services import gold_program_service
from tests.helpers import NOW, db_add, db_scalars


def test_start_program_returns_envelope(client):
    resp = client.post("/api/gold/start", json={"name": "Gold 2024", "description": "yearly"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["statusCode"] == 201
    assert body["message"] == "Program started successfully"
    assert body["data"]["isActive"] is True
    assert body["data"]["name"] == "Gold 2024"
    assert body["data"]["startDate"].startswith(NOW.isoformat()[:16])


def test_only_one_active_program(client, program):
    resp = client.post("/api/gold/start", json={"name": "Second"})
    assert resp.status_code == 400
    assert resp.json() == {
        "statusCode": 400,
        "message": "Another program is already active",
        "success": False,
    }

    resp = client.post("/api/gold/end", json={"programId": program["id"]})
    assert resp.status_code == 200
    assert resp.json()["data"]["isActive"] is False
    assert resp.json()["data"]["endDate"] is not None

    resp = client.post("/api/gold/start", json={"name": "Second"})
    assert resp.status_code == 201


def test_end_requires_an_active_program(client, program):
    assert client.post("/api/gold/end", json={"programId": 999}).status_code == 404
    assert client.post("/api/gold/end", json={"programId": program["id"]}).status_code == 200
    resp = client.post("/api/gold/end", json={"programId": program["id"]})
    assert resp.status_code == 404
    assert resp.json()["message"] == "No active program found"


def test_active_program_none(client):
    resp = client.get("/api/gold/active")
    assert resp.status_code == 200
    assert resp.json()["data"] is None


def test_active_program_includes_lots_and_winners(client, program, make_user, lot_for):
    alice = make_user("Alice")
    lot = lot_for(alice)
    client.post("/api/gold/winners", json={
        "programId": program["id"],
        "winners": [{"lotId": lot["id"], "month": 6, "year": 2024, "prizeAmount": "500"}],
    })

    data = client.get("/api/gold/active").json()["data"]
    assert data["id"] == program["id"]
    assert [l["user"]["name"] for l in data["lots"]] == ["Alice"]
    assert len(data["winners"]) == 1
    assert data["winners"][0]["lot"]["user"]["memberId"] == alice.member_id
    assert data["winners"][0]["prizeAmount"] == 500.0


def test_all_programs_newest_first_with_counts(client, program, make_user, lot_for):
    lot_for(make_user())
    lot_for(make_user())
    client.post("/api/gold/end", json={"programId": program["id"]})
    client.post("/api/gold/start", json={"name": "Gold 2025"})

    data = client.get("/api/gold/all").json()["data"]
    assert [p["name"] for p in data] == ["Gold 2025", "Gold 2024"]
    assert data[0]["counts"] == {"lots": 0, "winners": 0}
    assert data[1]["counts"] == {"lots": 2, "winners": 0}


def test_program_details(client, program, make_user, lot_for):
    lot = lot_for(make_user("Bob"))
    for year, month in [(2024, 3), (2023, 12), (2024, 1)]:
        client.post("/api/gold/payments", json={"lotId": lot["id"], "year": year, "month": month})

    data = client.get(f"/api/gold/{program['id']}").json()["data"]
    periods = [(p["year"], p["month"]) for p in data["lots"][0]["payments"]]
    assert periods == [(2023, 12), (2024, 1), (2024, 3)]
    assert data["lots"][0]["user"]["name"] == "Bob"
    assert data["winners"] == []


def test_program_details_not_found(client):
    resp = client.get("/api/gold/12345")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_invalid_program_id_is_validation_error(client):
    resp = client.get("/api/gold/not-a-number")
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_assign_lot_requires_active_program_and_user(client, program, make_user):
    user = make_user()
    resp = client.post("/api/gold/lots", json={"programId": program["id"], "userId": 999})
    assert resp.status_code == 404
    assert resp.json()["message"] == "User not found"

    client.post("/api/gold/end", json={"programId": program["id"]})
    resp = client.post("/api/gold/lots", json={"programId": program["id"], "userId": user.id})
    assert resp.status_code == 400
    assert resp.json()["message"] == "No active program found"


def test_user_may_hold_several_lots(client, program, make_user, lot_for):
    user = make_user()
    first = lot_for(user)
    second = lot_for(user)
    assert first["id"] != second["id"]
    lots = client.get(f"/api/gold/{program['id']}/lots").json()["data"]
    assert [l["userId"] for l in lots] == [user.id, user.id]


def test_lot_details(client, program, make_user, lot_for):
    lot = lot_for(make_user("Carol"))
    client.post("/api/gold/payments", json={"lotId": lot["id"], "year": 2024, "month": 2})

    data = client.get(f"/api/gold/lots/{lot['id']}").json()["data"]
    assert data["program"]["id"] == program["id"]
    assert data["user"]["name"] == "Carol"
    assert [p["month"] for p in data["payments"]] == [2]
    assert data["winners"] == []

    assert client.get("/api/gold/lots/999").status_code == 404


def test_store_rejects_second_active_slot(client, program):
    with pytest.raises(IntegrityError):
        db_add(GoldProgram(name="Sneaky", is_active=True, active_slot=ACTIVE_SLOT))


def test_concurrent_start_maps_to_conflict(client, program, monkeypatch):
    # 模拟并发：预检没看到进行中的期次，只剩 active_slot 唯一约束兜底
    async def nothing_active(session):
        return None

    monkeypatch.setattr(gold_program_service, "active_program_id", nothing_active)
    resp = client.post("/api/gold/start", json={"name": "Racing"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Another program is already active"

    active = db_scalars(select(GoldProgram).where(GoldProgram.is_active.is_(True)))
    assert [p.name for p in active] == ["Gold 2024"]
