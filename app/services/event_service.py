# app/services/event_service.py
import logging
import math
from typing import List

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError
from app.models.event import Event, EventRegistration
from app.schemas.event import AttendedEvent, EventDetail, EventDetailOut, EventPage
from app.schemas.home import EventOut
from app.services.home_service import event_card, registration_previews

logger = logging.getLogger(__name__)

SUGGESTED_LIMIT = 3


async def _registration_counts(session: AsyncSession, event_ids: List[int]) -> dict:
    if not event_ids:
        return {}
    rs = await session.execute(
        select(EventRegistration.event_id, func.count(EventRegistration.id))
        .where(EventRegistration.event_id.in_(event_ids))
        .group_by(EventRegistration.event_id)
    )
    return {eid: int(n) for eid, n in rs.all()}


async def _cards(session: AsyncSession, events: List[Event]) -> list:
    ids = [e.id for e in events]
    counts = await _registration_counts(session, ids)
    previews = await registration_previews(session, ids)
    return [event_card(e, counts.get(e.id, 0), previews.get(e.id, [])) for e in events]


async def list_active_events(session: AsyncSession, page: int, limit: int) -> EventPage:
    total = int(await session.scalar(
        select(func.count(Event.id)).where(Event.is_finished.is_(False))
    ) or 0)
    rs = await session.execute(
        select(Event)
        .where(Event.is_finished.is_(False))
        .order_by(Event.created_at.desc(), Event.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return EventPage(
        events=await _cards(session, list(rs.scalars().all())),
        total_events=total,
        current_page=page,
        total_pages=math.ceil(total / limit) if limit else 0,
    )


async def get_event(session: AsyncSession, event_id: int, user_id: int) -> EventDetailOut:
    event = await session.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event not found")

    total = int(await session.scalar(
        select(func.count(EventRegistration.id)).where(EventRegistration.event_id == event_id)
    ) or 0)
    mine = await session.scalar(
        select(EventRegistration.id).where(
            EventRegistration.event_id == event_id,
            EventRegistration.user_id == user_id,
        )
    )

    rs = await session.execute(
        select(Event)
        .where(Event.is_finished.is_(False), Event.id != event_id)
        .order_by(Event.event_date.asc())
        .limit(SUGGESTED_LIMIT)
    )

    return EventDetailOut(
        event=EventDetail(
            **EventOut.model_validate(event).model_dump(),
            total_registrations=total,
        ),
        is_registered=mine is not None,
        suggested_events=await _cards(session, list(rs.scalars().all())),
    )


async def register_for_event(session: AsyncSession, event_id: int, user_id: int) -> EventRegistration:
    event = await session.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event not found")

    existing = await session.scalar(
        select(EventRegistration.id).where(
            EventRegistration.event_id == event_id,
            EventRegistration.user_id == user_id,
        )
    )
    if existing is not None:
        raise ConflictError("You are already registered for this event.")

    reg = EventRegistration(event_id=event_id, user_id=user_id, is_attended=False)
    session.add(reg)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError("You are already registered for this event.") from e
    await session.refresh(reg)
    logger.info("user %s registered for event %s", user_id, event_id)
    return reg


async def attended_events(session: AsyncSession, user_id: int) -> List[AttendedEvent]:
    rs = await session.execute(
        select(EventRegistration, Event)
        .join(Event, Event.id == EventRegistration.event_id)
        .where(EventRegistration.user_id == user_id, EventRegistration.is_attended.is_(True))
        .order_by(Event.event_date.desc())
    )
    return [
        AttendedEvent(**EventOut.model_validate(ev).model_dump(), attended_at=reg.created_at)
        for reg, ev in rs.all()
    ]
