# app/services/home_service.py
import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, TypeVar

from sqlalchemy import func, or_, and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.errors import InternalError
from app.core.media import to_data_url
from app.core.timeutil import month_name, previous_month
from app.db.session import AsyncSessionLocal
from app.models.content import Banner, Job, News, Service
from app.models.event import Event, EventRegistration
from app.models.gold import GoldLot, GoldProgram
from app.models.investment import LongTermInvestment
from app.models.travel import STATUS_AVAILABLE, Travel
from app.schemas.home import (
    AirportOut, EventCard, EventOut, HomeGoldProgram, HomeInvestment, HomeOut, HomeWinner,
    JobCard, NewsCard, RegistrationPreview, ServiceOut, TravelCard,
)
from app.services.gold_winner_service import get_winners_for_month

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ---------- 各分支查询（互不依赖，各用独立 session 并发执行） ----------

PREVIEW_PER_EVENT = 3


async def registration_previews(
    session: AsyncSession, event_ids: List[int], per_event: int = PREVIEW_PER_EVENT
) -> Dict[int, list]:
    """每个活动只取最早的 per_event 条报名（带用户头像），在库里截断"""
    if not event_ids:
        return {}
    ranked = (
        select(
            EventRegistration.id,
            func.row_number()
            .over(partition_by=EventRegistration.event_id, order_by=EventRegistration.id)
            .label("rn"),
        )
        .where(EventRegistration.event_id.in_(event_ids))
        .subquery()
    )
    rs = await session.execute(
        select(EventRegistration)
        .join(ranked, ranked.c.id == EventRegistration.id)
        .where(ranked.c.rn <= per_event)
        .options(selectinload(EventRegistration.user))
        .order_by(EventRegistration.event_id, EventRegistration.id)
    )
    previews: Dict[int, list] = {}
    for reg in rs.scalars().all():
        previews.setdefault(reg.event_id, []).append(reg)
    return previews


async def latest_events(session: AsyncSession, limit: int) -> list:
    counts = (
        select(EventRegistration.event_id, func.count(EventRegistration.id).label("n"))
        .group_by(EventRegistration.event_id)
        .subquery()
    )
    rs = await session.execute(
        select(Event, func.coalesce(counts.c.n, 0))
        .outerjoin(counts, counts.c.event_id == Event.id)
        .order_by(Event.created_at.desc(), Event.id.desc())
        .limit(limit)
    )
    rows = rs.all()
    previews = await registration_previews(session, [e.id for e, _ in rows])
    return [event_card(e, int(n), previews.get(e.id, [])) for e, n in rows]


def event_card(event: Event, total: int, previews: list) -> EventCard:
    return EventCard(
        **EventOut.model_validate(event).model_dump(),
        total_registrations=total,
        registrations=[RegistrationPreview.model_validate(r) for r in previews],
    )



async def latest_services(session: AsyncSession, limit: int) -> list:
    rs = await session.execute(
        select(Service).order_by(Service.created_at.desc(), Service.id.desc()).limit(limit)
    )
    return [ServiceOut.model_validate(s) for s in rs.scalars().all()]


async def latest_jobs(session: AsyncSession, limit: int) -> list:
    rs = await session.execute(
        select(Job).order_by(Job.created_at.desc(), Job.id.desc()).limit(limit)
    )
    return [JobCard.model_validate(j) for j in rs.scalars().all()]


async def banner_image(session: AsyncSession):
    banner = await session.scalar(select(Banner).order_by(Banner.id).limit(1))
    return to_data_url(banner.image) if banner else None


async def latest_news(session: AsyncSession, limit: int) -> list:
    rs = await session.execute(
        select(News).order_by(News.created_at.desc(), News.id.desc()).limit(limit)
    )
    return [NewsCard.model_validate(n) for n in rs.scalars().all()]


async def upcoming_travels(session: AsyncSession, now: datetime, limit: int) -> list:
    """今天之后、或今天且时间未过的 AVAILABLE 行程，最近的在前。"""
    today = now.date()
    rs = await session.execute(
        select(Travel)
        .where(
            Travel.status == STATUS_AVAILABLE,
            or_(
                Travel.travel_date > today,
                and_(Travel.travel_date == today, Travel.travel_time >= now.strftime("%H:%M")),
            ),
        )
        .options(
            selectinload(Travel.user),
            selectinload(Travel.from_airport),
            selectinload(Travel.to_airport),
        )
        .order_by(Travel.travel_date.asc(), Travel.travel_time.asc())
        .limit(limit)
    )
    return [
        TravelCard(
            id=t.id,
            user_id=t.user_id,
            user_name=t.user.name,
            from_airport=AirportOut.model_validate(t.from_airport),
            to_airport=AirportOut.model_validate(t.to_airport),
            travel_date=t.travel_date,
            travel_time=t.travel_time,
            status=t.status,
            created_at=t.created_at,
        )
        for t in rs.scalars().all()
    ]


async def has_active_program(session: AsyncSession) -> bool:
    pid = await session.scalar(
        select(GoldProgram.id).where(GoldProgram.is_active.is_(True)).limit(1)
    )
    return pid is not None


async def active_investment_count(session: AsyncSession) -> int:
    return int(await session.scalar(
        select(func.count(LongTermInvestment.id)).where(LongTermInvestment.is_active.is_(True))
    ) or 0)


async def active_lot_count(session: AsyncSession) -> int:
    return int(await session.scalar(
        select(func.count(GoldLot.id))
        .join(GoldProgram, GoldProgram.id == GoldLot.program_id)
        .where(GoldProgram.is_active.is_(True))
    ) or 0)


def home_winner(w) -> HomeWinner:
    return HomeWinner(
        id=w.id,
        year=w.year,
        month=w.month,
        month_name=month_name(w.month),
        prize_amount=w.prize_amount,
        winner_name=w.lot.user.name,
        member_id=w.lot.user.member_id,
        created_at=w.created_at,
    )


async def _run(query: Callable[..., Awaitable[T]], *args) -> T:
    async with AsyncSessionLocal() as session:
        return await query(session, *args)


async def home_page(now: datetime) -> HomeOut:
    """
    首页聚合：固定的一组只读查询并发执行后合并。
    任一分支失败整体返回 500，不做部分降级。
    """
    prev_year, prev_month = previous_month(now.year, now.month)
    try:
        (
            events, services, jobs, banner, news, travels,
            program_active, current_winners, previous_winners,
            investments_count, participants_count,
        ) = await asyncio.gather(
            _run(latest_events, settings.HOME_EVENTS_LIMIT),
            _run(latest_services, settings.HOME_SERVICES_LIMIT),
            _run(latest_jobs, settings.HOME_JOBS_LIMIT),
            _run(banner_image),
            _run(latest_news, settings.HOME_NEWS_LIMIT),
            _run(upcoming_travels, now, settings.HOME_TRAVELS_LIMIT),
            _run(has_active_program),
            _run(get_winners_for_month, now.year, now.month),
            _run(get_winners_for_month, prev_year, prev_month),
            _run(active_investment_count),
            _run(active_lot_count),
        )
    except Exception as e:
        logger.exception("home page fan-out failed")
        raise InternalError("Failed to fetch home page data") from e

    is_current = bool(current_winners)
    shown = current_winners if is_current else previous_winners
    display_year, display_month = (now.year, now.month) if is_current else (prev_year, prev_month)

    return HomeOut(
        banner_image=banner,
        events=events,
        jobs=jobs,
        services=services,
        news=news,
        travels=travels,
        gold_program=HomeGoldProgram(
            is_active=program_active,
            current_winners=[home_winner(w) for w in shown],
            winners_month=month_name(display_month),
            winners_year=display_year,
            is_current_month=is_current,
            total_participants=participants_count,
        ),
        long_term_investment=HomeInvestment(total_participants=investments_count),
    )
