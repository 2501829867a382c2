from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.timeutil import get_now
from app.db.session import get_session
from app.models.user import User
from app.schemas.common import ApiResponse, ok
from app.schemas.event import (
    AttendedEventsOut, EventDetailOut, EventPage, EventRegisterIn, RegistrationOut,
)
from app.schemas.home import HomeOut
from app.schemas.user import LoginIn, MeOut, RegisterIn, TokenOut, UserOut
from app.services import event_service, home_service, user_service


router = APIRouter(prefix="/api/user", tags=["user"])


@router.post("/register", response_model=ApiResponse[UserOut], status_code=201)
async def register(data: RegisterIn, session: AsyncSession = Depends(get_session)):
    u = await user_service.register(session, data)
    return ok(UserOut.model_validate(u), "User registered successfully", 201)


@router.post("/login", response_model=ApiResponse[TokenOut])
async def login(data: LoginIn, session: AsyncSession = Depends(get_session)):
    token = await user_service.login(session, data.email, data.password)
    return ok(TokenOut(access_token=token), "Login successful")


@router.get("/me", response_model=ApiResponse[MeOut])
async def me(
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    data = await user_service.get_me(session, current_user.id)
    return ok(data, "Profile retrieved successfully")


@router.get("/home", response_model=ApiResponse[HomeOut])
async def home(now: datetime = Depends(get_now)):
    data = await home_service.home_page(now)
    return ok(data, "Home data retrieved successfully")


# ---------- 活动 ----------
@router.get("/events", response_model=ApiResponse[EventPage])
async def events(
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        session: AsyncSession = Depends(get_session),
):
    data = await event_service.list_active_events(session, page, limit)
    return ok(data, "Active events retrieved successfully")


@router.get("/events/{event_id}", response_model=ApiResponse[EventDetailOut])
async def event_detail(
        event_id: int,
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    data = await event_service.get_event(session, event_id, current_user.id)
    return ok(data, "Event details retrieved successfully")


@router.post("/register-event", response_model=ApiResponse[RegistrationOut], status_code=201)
async def register_event(
        payload: EventRegisterIn,
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    reg = await event_service.register_for_event(session, payload.event_id, current_user.id)
    return ok(RegistrationOut.model_validate(reg), "Successfully registered for the event", 201)


@router.get("/attended-events", response_model=ApiResponse[AttendedEventsOut])
async def attended(
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    rows = await event_service.attended_events(session, current_user.id)
    data = AttendedEventsOut(events=rows, total_attended=len(rows))
    return ok(data, "Attended events retrieved successfully")
