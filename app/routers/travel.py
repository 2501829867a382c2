from datetime import datetime
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.timeutil import get_now
from app.db.session import get_session
from app.models.user import User
from app.schemas.common import ApiResponse, ok
from app.schemas.home import AirportOut
from app.schemas.travel import TravelIn, TravelOut, TravelUpdateIn, UpcomingTravelsOut
from app.services import travel_service
from app.services.notify_service import send_global_notification

router = APIRouter(prefix="/api/travel", tags=["travel"])


@router.post("/", response_model=ApiResponse[TravelOut], status_code=201)
async def add_travel(
        payload: TravelIn,
        background: BackgroundTasks,
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    travel = await travel_service.add_travel(session, current_user.id, payload)
    # 推送放到响应之后，失败不影响本次写入
    background.add_task(
        send_global_notification,
        "Hey KMCC Members!",
        "Check out the latest travel update!",
        {"type": "travel", "travelId": str(travel.id)},
    )
    return ok(TravelOut.model_validate(travel), "Travel details added successfully", 201)


@router.get("/", response_model=ApiResponse[List[TravelOut]])
async def all_travels(session: AsyncSession = Depends(get_session)):
    rows = await travel_service.list_travels(session)
    return ok([TravelOut.model_validate(t) for t in rows], "Travel data retrieved successfully")


@router.get("/upcoming", response_model=ApiResponse[UpcomingTravelsOut])
async def upcoming(
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        session: AsyncSession = Depends(get_session),
        now: datetime = Depends(get_now),
        current_user: User = Depends(get_current_user),
):
    data = await travel_service.upcoming_travels(session, current_user.id, now, page, limit)
    return ok(data, "Upcoming travels fetched successfully")


@router.get("/airports", response_model=ApiResponse[List[AirportOut]])
async def airports(session: AsyncSession = Depends(get_session)):
    rows = await travel_service.list_airports(session)
    return ok([AirportOut.model_validate(a) for a in rows], "Airports retrieved successfully")


@router.put("/{travel_id}", response_model=ApiResponse[TravelOut])
async def update_travel(
        travel_id: int,
        payload: TravelUpdateIn,
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    travel = await travel_service.update_travel(session, travel_id, payload)
    return ok(TravelOut.model_validate(travel), "Travel record updated successfully")


@router.delete("/{travel_id}", response_model=ApiResponse[None])
async def delete_travel(
        travel_id: int,
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    await travel_service.delete_travel(session, travel_id, current_user)
    return ok(None, "Travel record deleted successfully")
