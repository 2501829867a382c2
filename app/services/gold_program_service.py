# app/services/gold_program_service.py
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ConflictError, NotFoundError
from app.models.gold import ACTIVE_SLOT, GoldLot, GoldProgram, GoldWinner

logger = logging.getLogger(__name__)


async def active_program_id(session: AsyncSession) -> Optional[int]:
    return await session.scalar(
        select(GoldProgram.id).where(GoldProgram.is_active.is_(True)).limit(1)
    )


async def start_program(
    session: AsyncSession, name: str, description: Optional[str], now: datetime
) -> GoldProgram:
    """开一期新的 gold program；同一时刻只允许一个进行中。"""
    if await active_program_id(session) is not None:
        raise ConflictError("Another program is already active")

    program = GoldProgram(
        name=name,
        description=description,
        is_active=True,
        active_slot=ACTIVE_SLOT,
        start_date=now,
    )
    session.add(program)
    try:
        await session.commit()
    except IntegrityError as e:
        # 并发开期时由 active_slot 唯一约束兜住
        await session.rollback()
        raise ConflictError("Another program is already active") from e
    await session.refresh(program)
    logger.info("gold program %s started: %s", program.id, program.name)
    return program


async def end_program(session: AsyncSession, program_id: int, now: datetime) -> GoldProgram:
    program = await session.scalar(
        select(GoldProgram).where(
            GoldProgram.id == program_id,
            GoldProgram.is_active.is_(True),
        )
    )
    if program is None:
        raise NotFoundError("No active program found")

    program.is_active = False
    program.active_slot = None
    program.end_date = now
    await session.commit()
    logger.info("gold program %s ended", program.id)
    return program


async def get_active_program(session: AsyncSession) -> Optional[GoldProgram]:
    return await session.scalar(
        select(GoldProgram)
        .where(GoldProgram.is_active.is_(True))
        .options(
            selectinload(GoldProgram.lots).selectinload(GoldLot.user),
            selectinload(GoldProgram.winners).selectinload(GoldWinner.lot).selectinload(GoldLot.user),
        )
        .limit(1)
    )


async def list_programs(session: AsyncSession) -> List[Tuple[GoldProgram, int, int]]:
    """所有期（新→旧），附带 lot / winner 数量。"""
    lots_count = (
        select(func.count(GoldLot.id))
        .where(GoldLot.program_id == GoldProgram.id)
        .correlate(GoldProgram)
        .scalar_subquery()
    )
    winners_count = (
        select(func.count(GoldWinner.id))
        .where(GoldWinner.program_id == GoldProgram.id)
        .correlate(GoldProgram)
        .scalar_subquery()
    )
    rows = await session.execute(
        select(GoldProgram, lots_count, winners_count)
        .order_by(GoldProgram.created_at.desc(), GoldProgram.id.desc())
    )
    return [(p, int(lc or 0), int(wc or 0)) for p, lc, wc in rows.all()]


async def get_program_details(session: AsyncSession, program_id: int) -> GoldProgram:
    program = await session.scalar(
        select(GoldProgram)
        .where(GoldProgram.id == program_id)
        .options(
            selectinload(GoldProgram.lots).options(
                selectinload(GoldLot.user),
                selectinload(GoldLot.payments),
                selectinload(GoldLot.winners),
            ),
            selectinload(GoldProgram.winners).selectinload(GoldWinner.lot).selectinload(GoldLot.user),
        )
    )
    if program is None:
        raise NotFoundError("Program not found")
    return program
