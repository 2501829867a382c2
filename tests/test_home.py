from datetime import date, datetime

from app.core.media import to_data_url
from app.models.content import Banner, Job, News, Service
from app.models.event import Event, EventRegistration
from app.models.investment import LongTermInvestment
from app.models.travel import STATUS_ONBOARD, Airport, Travel
from app.services import home_service
from tests.helpers import db_add


def add_winner(client, program_id, lot_id, month, year, prize=None):
    resp = client.post("/api/gold/winners", json={
        "programId": program_id,
        "winners": [{"lotId": lot_id, "month": month, "year": year, "prizeAmount": prize}],
    })
    assert resp.status_code == 201


def test_home_empty(client):
    resp = client.get("/api/user/home")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["bannerImage"] is None
    assert data["events"] == [] and data["travels"] == []
    gold = data["goldProgram"]
    assert gold["isActive"] is False
    assert gold["currentWinners"] == []
    assert (gold["winnersMonth"], gold["winnersYear"], gold["isCurrentMonth"]) == ("May", 2024, False)
    assert data["longTermInvestment"] == {"totalParticipants": 0}


def test_home_current_month_winners(client, program, make_user, lot_for):
    lot = lot_for(make_user("Lucky", member_id="KM-7"))
    lot_for(make_user())
    add_winner(client, program["id"], lot["id"], 6, 2024, "1000")

    gold = client.get("/api/user/home").json()["data"]["goldProgram"]
    assert gold["isActive"] is True
    assert gold["totalParticipants"] == 2
    assert gold["isCurrentMonth"] is True
    assert (gold["winnersMonth"], gold["winnersYear"]) == ("June", 2024)
    winner = gold["currentWinners"][0]
    assert (winner["winnerName"], winner["memberId"], winner["monthName"]) == ("Lucky", "KM-7", "June")
    assert winner["prizeAmount"] == 1000.0


def test_home_falls_back_to_previous_month(client, program, make_user, lot_for, set_now):
    may, dec = lot_for(make_user("May")), lot_for(make_user("Dec"))
    add_winner(client, program["id"], may["id"], 5, 2024)
    add_winner(client, program["id"], dec["id"], 12, 2023)

    gold = client.get("/api/user/home").json()["data"]["goldProgram"]
    assert gold["isCurrentMonth"] is False
    assert [w["winnerName"] for w in gold["currentWinners"]] == ["May"]

    set_now(datetime(2024, 1, 3, 9, 0))
    gold = client.get("/api/user/home").json()["data"]["goldProgram"]
    assert (gold["winnersMonth"], gold["winnersYear"]) == ("December", 2023)
    assert [w["winnerName"] for w in gold["currentWinners"]] == ["Dec"]


def test_home_content_sections(client, make_user):
    owner, guest = make_user("Owner"), make_user("Guest")
    db_add(Banner(image=b"banner-bytes"))
    db_add(*[Job(company_name=f"Co {i}", position="Driver") for i in range(6)])
    db_add(Service(title="Legal help"), News(heading="Annual meeting"))
    db_add(LongTermInvestment(user_id=owner.id), LongTermInvestment(user_id=guest.id, is_active=False))

    event = db_add(Event(title="Iftar", event_date=datetime(2024, 6, 20, 18, 0)))
    db_add(
        EventRegistration(event_id=event.id, user_id=owner.id),
        EventRegistration(event_id=event.id, user_id=guest.id),
    )

    ruh, jed = db_add(Airport(name="Riyadh", iata_code="RUH"), Airport(name="Jeddah", iata_code="JED"))
    db_add(
        Travel(user_id=owner.id, from_airport_id=ruh.id, to_airport_id=jed.id,
               travel_date=date(2024, 6, 15), travel_time="09:00"),
        Travel(user_id=owner.id, from_airport_id=ruh.id, to_airport_id=jed.id,
               travel_date=date(2024, 6, 15), travel_time="11:30"),
        Travel(user_id=guest.id, from_airport_id=jed.id, to_airport_id=ruh.id,
               travel_date=date(2024, 6, 16), travel_time="07:00"),
        Travel(user_id=guest.id, from_airport_id=jed.id, to_airport_id=ruh.id,
               travel_date=date(2024, 6, 17), travel_time="07:00", status=STATUS_ONBOARD),
    )

    data = client.get("/api/user/home").json()["data"]
    assert data["bannerImage"].startswith("data:image/jpeg;base64,")
    assert len(data["jobs"]) == 4
    assert [s["title"] for s in data["services"]] == ["Legal help"]
    assert [n["heading"] for n in data["news"]] == ["Annual meeting"]
    assert data["longTermInvestment"]["totalParticipants"] == 1

    card = data["events"][0]
    assert card["title"] == "Iftar"
    assert card["totalRegistrations"] == 2
    assert len(card["registrations"]) == 2

    travels = data["travels"]
    assert [(t["travelDate"], t["travelTime"]) for t in travels] == [
        ("2024-06-15", "11:30"), ("2024-06-16", "07:00"),
    ]
    assert travels[0]["userName"] == "Owner"
    assert travels[0]["fromAirport"]["iataCode"] == "RUH"


def test_home_fails_as_a_whole(client, monkeypatch):
    async def broken(session, limit):
        raise RuntimeError("jobs table unavailable")

    monkeypatch.setattr(home_service, "latest_jobs", broken)
    resp = client.get("/api/user/home")
    assert resp.status_code == 500
    assert resp.json() == {
        "statusCode": 500,
        "message": "Failed to fetch home page data",
        "success": False,
    }


def test_event_cards_preview_three_registrants(client, make_user):
    users = [make_user(f"Guest {i}", profile_image=bytes([i + 1])) for i in range(5)]
    busy = db_add(Event(title="Eid gathering", event_date=datetime(2024, 6, 16, 20, 0)))
    quiet = db_add(Event(title="Book club", event_date=datetime(2024, 6, 18, 19, 0)))
    db_add(*[EventRegistration(event_id=busy.id, user_id=u.id) for u in users])
    db_add(EventRegistration(event_id=quiet.id, user_id=users[0].id))

    cards = {e["title"]: e for e in client.get("/api/user/home").json()["data"]["events"]}
    assert cards["Eid gathering"]["totalRegistrations"] == 5
    previews = [r["user"]["profileImage"] for r in cards["Eid gathering"]["registrations"]]
    assert previews == [to_data_url(bytes([i + 1])) for i in range(3)]
    assert len(cards["Book club"]["registrations"]) == 1

    page = client.get("/api/user/events").json()["data"]
    assert {e["title"]: len(e["registrations"]) for e in page["events"]} == {
        "Eid gathering": 3, "Book club": 1,
    }
