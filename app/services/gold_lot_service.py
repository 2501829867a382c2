# app/services/gold_lot_service.py
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ConflictError, NotFoundError
from app.models.gold import GoldLot, GoldProgram
from app.models.user import User

logger = logging.getLogger(__name__)


async def _load_lot(session: AsyncSession, lot_id: int, *options) -> GoldLot | None:
    return await session.scalar(
        select(GoldLot)
        .where(GoldLot.id == lot_id)
        .options(*options)
        .execution_options(populate_existing=True)
    )


async def assign_lot(session: AsyncSession, program_id: int, user_id: int) -> GoldLot:
    """给用户在进行中的期里分配一个 lot（同一用户可持有多个）。"""
    program = await session.scalar(
        select(GoldProgram).where(
            GoldProgram.id == program_id,
            GoldProgram.is_active.is_(True),
        )
    )
    if program is None:
        raise ConflictError("No active program found")

    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    lot = GoldLot(program_id=program.id, user_id=user.id)
    session.add(lot)
    await session.commit()
    logger.info("lot %s assigned to user %s in program %s", lot.id, user.id, program.id)
    return await _load_lot(session, lot.id, selectinload(GoldLot.user))


async def get_lot_details(session: AsyncSession, lot_id: int) -> GoldLot:
    lot = await _load_lot(
        session,
        lot_id,
        selectinload(GoldLot.user),
        selectinload(GoldLot.program),
        selectinload(GoldLot.payments),
        selectinload(GoldLot.winners),
    )
    if lot is None:
        raise NotFoundError("Lot not found")
    return lot


async def list_lots_by_program(session: AsyncSession, program_id: int) -> List[GoldLot]:
    rs = await session.execute(
        select(GoldLot)
        .where(GoldLot.program_id == program_id)
        .options(
            selectinload(GoldLot.user),
            selectinload(GoldLot.payments),
            selectinload(GoldLot.winners),
        )
        .order_by(GoldLot.id)
    )
    return list(rs.scalars().all())


async def delete_lot(session: AsyncSession, lot_id: int) -> None:
    """有缴费或中奖记录的 lot 不允许删除。"""
    lot = await _load_lot(
        session, lot_id, selectinload(GoldLot.payments), selectinload(GoldLot.winners)
    )
    if lot is None:
        raise NotFoundError("Lot not found")
    if lot.winners:
        raise ConflictError("Cannot delete lot with winners")
    if lot.payments:
        raise ConflictError("Cannot delete lot with payments")

    await session.delete(lot)
    await session.commit()
    logger.info("lot %s deleted", lot_id)
