# app/services/travel_service.py
import logging
import math
from datetime import datetime
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.models.travel import STATUS_AVAILABLE, Airport, Travel
from app.models.user import User
from app.schemas.travel import Pagination, TravelIn, TravelUpdateIn, UpcomingTravel, UpcomingTravelsOut

logger = logging.getLogger(__name__)


def _with_refs():
    return (
        selectinload(Travel.user),
        selectinload(Travel.from_airport),
        selectinload(Travel.to_airport),
    )


async def _load(session: AsyncSession, travel_id: int) -> Travel | None:
    return await session.scalar(
        select(Travel)
        .where(Travel.id == travel_id)
        .options(*_with_refs())
        .execution_options(populate_existing=True)
    )


async def _check_airports(session: AsyncSession, from_id: int, to_id: int) -> None:
    rs = await session.execute(select(Airport.id).where(Airport.id.in_({from_id, to_id})))
    if len(set(rs.scalars().all())) != len({from_id, to_id}):
        raise ValidationError("Invalid airport selection")


async def add_travel(session: AsyncSession, user_id: int, data: TravelIn) -> Travel:
    await _check_airports(session, data.from_airport_id, data.to_airport_id)
    travel = Travel(
        user_id=user_id,
        from_airport_id=data.from_airport_id,
        to_airport_id=data.to_airport_id,
        travel_date=data.travel_date,
        travel_time=data.travel_time,
        status=STATUS_AVAILABLE,
    )
    session.add(travel)
    await session.commit()
    logger.info("travel %s added by user %s", travel.id, user_id)
    return await _load(session, travel.id)


async def list_travels(session: AsyncSession) -> List[Travel]:
    rs = await session.execute(
        select(Travel).options(*_with_refs()).order_by(Travel.travel_date.desc(), Travel.id.desc())
    )
    return list(rs.scalars().all())


async def upcoming_travels(
    session: AsyncSession, user_id: int, now: datetime, page: int, limit: int
) -> UpcomingTravelsOut:
    cond = Travel.travel_date >= now.date()
    total = int(await session.scalar(select(func.count(Travel.id)).where(cond)) or 0)
    rs = await session.execute(
        select(Travel)
        .where(cond)
        .options(*_with_refs())
        .order_by(Travel.travel_date.asc(), Travel.travel_time.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    travels = [
        UpcomingTravel.model_validate(t).model_copy(update={"is_accessed": t.user_id == user_id})
        for t in rs.scalars().all()
    ]
    return UpcomingTravelsOut(
        travels=travels,
        pagination=Pagination(
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
            current_page=page,
            has_next_page=page * limit < total,
            has_previous_page=page > 1,
        ),
    )


async def update_travel(session: AsyncSession, travel_id: int, data: TravelUpdateIn) -> Travel:
    travel = await session.get(Travel, travel_id)
    if travel is None:
        raise NotFoundError("Travel record not found")
    await _check_airports(session, data.from_airport_id, data.to_airport_id)

    travel.from_airport_id = data.from_airport_id
    travel.to_airport_id = data.to_airport_id
    travel.travel_date = data.travel_date
    travel.travel_time = data.travel_time
    travel.status = data.status
    await session.commit()
    return await _load(session, travel_id)


async def delete_travel(session: AsyncSession, travel_id: int, user: User) -> None:
    travel = await session.get(Travel, travel_id)
    if travel is None:
        raise NotFoundError("Travel record not found")
    if travel.user_id != user.id and not user.is_admin:
        raise ForbiddenError("You are not authorized to delete this travel record")
    await session.delete(travel)
    await session.commit()
    logger.info("travel %s deleted by user %s", travel_id, user.id)


async def list_airports(session: AsyncSession) -> List[Airport]:
    rs = await session.execute(select(Airport).order_by(Airport.name))
    return list(rs.scalars().all())
