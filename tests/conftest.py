import asyncio
from datetime import datetime

from tests.helpers import NOW, db_add

import pytest
from fastapi.testclient import TestClient

from app.core.security import hash_password
from app.core.timeutil import get_now
from app.main import app
from app.models.user import User
from app.services.bootstrap_service import drop_db, init_db


async def _reset():
    await drop_db()
    await init_db()


@pytest.fixture
def client():
    asyncio.run(_reset())
    app.dependency_overrides[get_now] = lambda: NOW
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def set_now():
    def _set(dt: datetime):
        app.dependency_overrides[get_now] = lambda: dt
    return _set


@pytest.fixture
def make_user():
    counter = {"n": 0}

    def _make(name: str = None, admin: bool = False, **fields) -> User:
        counter["n"] += 1
        n = counter["n"]
        u = User(
            name=name or f"Member {n}",
            email=fields.pop("email", f"member{n}@example.com"),
            password_hash=hash_password("secret123"),
            member_id=fields.pop("member_id", f"KM{n:04d}"),
            is_admin=admin,
            **fields,
        )
        return db_add(u)
    return _make


@pytest.fixture
def program(client):
    resp = client.post("/api/gold/start", json={"name": "Gold 2024", "description": "yearly"})
    assert resp.status_code == 201
    return resp.json()["data"]


@pytest.fixture
def lot_for(client, program):
    def _assign(user: User, program_id: int = None) -> dict:
        resp = client.post(
            "/api/gold/lots",
            json={"programId": program_id or program["id"], "userId": user.id},
        )
        assert resp.status_code == 201, resp.json()
        return resp.json()["data"]
    return _assign
