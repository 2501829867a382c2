# app/services/gold_winner_service.py
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.timeutil import previous_month
from app.models.gold import GoldLot, GoldWinner
from app.schemas.gold import WinnerEntryIn
from app.services.gold_payment_service import validate_period

logger = logging.getLogger(__name__)

SLOT_TAKEN = "This month/year combination already has a winner"


def _with_lot_user():
    return selectinload(GoldWinner.lot).selectinload(GoldLot.user)


def _missing_fields(entry: WinnerEntryIn) -> List[str]:
    missing = []
    if not entry.lot_id:
        missing.append("lotId")
    if not entry.month:
        missing.append("month")
    if not entry.year:
        missing.append("year")
    return missing


async def add_winners(
    session: AsyncSession,
    program_id: Optional[int],
    winners: Optional[Sequence[WinnerEntryIn]],
) -> List[GoldWinner]:
    """
    批量登记中奖：
      1) 每条必须有 lotId / month / year
      2) lot 必须属于该期
      3) 同一批次内 (lot, month, year) 不可重复
      4) 一个 lot 在一期内只能中一次（跨年份）
    校验全部通过后一次提交，要么全成功要么全失败。
    """
    if not program_id or not winners:
        raise ValidationError("Program ID and winners are required")

    for idx, w in enumerate(winners, start=1):
        missing = _missing_fields(w)
        if missing:
            raise ValidationError(
                f"Each winner must have lotId, month, and year (entry {idx} is missing {', '.join(missing)})"
            )
        validate_period(w.year, w.month)

    lot_ids = {w.lot_id for w in winners}
    rs = await session.execute(
        select(GoldLot.id).where(GoldLot.id.in_(lot_ids), GoldLot.program_id == program_id)
    )
    valid_ids = set(rs.scalars().all())
    if valid_ids != lot_ids:
        raise ConflictError("Some lots don't belong to this program")

    seen = set()
    for w in winners:
        key = (w.lot_id, w.month, w.year)
        if key in seen:
            raise ValidationError(
                f"Duplicate lot/month/year combination: Lot {w.lot_id}, Month {w.month}, Year {w.year}"
            )
        seen.add(key)

    if len(lot_ids) != len(winners):
        repeated = sorted({w.lot_id for w in winners if sum(x.lot_id == w.lot_id for x in winners) > 1})
        raise ConflictError(
            f"Lot(s) cannot win more than once: {', '.join(str(i) for i in repeated)}"
        )

    rs = await session.execute(
        select(GoldWinner.lot_id)
        .where(GoldWinner.program_id == program_id, GoldWinner.lot_id.in_(lot_ids))
        .distinct()
    )
    already = sorted(rs.scalars().all())
    if already:
        raise ConflictError(f"Lot(s) already won: {', '.join(str(i) for i in already)}")

    rows = [
        GoldWinner(
            program_id=program_id,
            lot_id=w.lot_id,
            month=w.month,
            year=w.year,
            prize_amount=Decimal(str(w.prize_amount)) if w.prize_amount is not None else None,
        )
        for w in winners
    ]
    session.add_all(rows)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError(SLOT_TAKEN) from e

    logger.info("program %s: %d winner(s) added", program_id, len(rows))
    rs = await session.execute(
        select(GoldWinner)
        .where(GoldWinner.id.in_([r.id for r in rows]))
        .options(_with_lot_user())
        .order_by(GoldWinner.id)
    )
    return list(rs.scalars().all())


async def get_program_winners(session: AsyncSession, program_id: int) -> List[GoldWinner]:
    rs = await session.execute(
        select(GoldWinner)
        .where(GoldWinner.program_id == program_id)
        .options(_with_lot_user())
        .order_by(GoldWinner.year.desc(), GoldWinner.month.asc(), GoldWinner.id.asc())
    )
    return list(rs.scalars().all())


async def get_winners_for_month(session: AsyncSession, year: int, month: int) -> List[GoldWinner]:
    rs = await session.execute(
        select(GoldWinner)
        .where(GoldWinner.year == year, GoldWinner.month == month)
        .options(_with_lot_user())
        .order_by(GoldWinner.created_at.asc(), GoldWinner.id.asc())
    )
    return list(rs.scalars().all())


async def get_current_winners(
    session: AsyncSession, now: datetime
) -> Tuple[List[GoldWinner], int, int, bool]:
    """
    本月中奖名单；本月为空时回退到上一个自然月（只回退一次）。
    返回 (winners, year, month, is_fallback)
    """
    year, month = now.year, now.month
    winners = await get_winners_for_month(session, year, month)
    if winners:
        return winners, year, month, False

    prev_year, prev_month = previous_month(year, month)
    prev = await get_winners_for_month(session, prev_year, prev_month)
    if prev:
        return prev, prev_year, prev_month, True
    return [], year, month, False


async def update_winner(
    session: AsyncSession,
    winner_id: int,
    month: int,
    year: int,
    lot_id: int,
    prize_amount: Optional[Decimal],
    program_id: int,
) -> GoldWinner:
    # 只校验 (program, month, year) 唯一；不复查 lot 是否已中过
    validate_period(year, month)

    winner = await session.get(GoldWinner, winner_id)
    if winner is None:
        raise NotFoundError("Winner not found")
    if await session.get(GoldLot, lot_id) is None:
        raise NotFoundError("Lot not found")

    taken = await session.scalar(
        select(GoldWinner.id).where(
            GoldWinner.id != winner_id,
            GoldWinner.month == month,
            GoldWinner.year == year,
            GoldWinner.program_id == program_id,
        )
    )
    if taken is not None:
        raise ConflictError(SLOT_TAKEN)

    winner.month = month
    winner.year = year
    winner.lot_id = lot_id
    winner.program_id = program_id
    winner.prize_amount = Decimal(str(prize_amount)) if prize_amount is not None else None
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError(SLOT_TAKEN) from e

    logger.info("winner %s updated: lot=%s %04d-%02d", winner_id, lot_id, year, month)
    return await session.scalar(
        select(GoldWinner)
        .where(GoldWinner.id == winner_id)
        .options(_with_lot_user())
        .execution_options(populate_existing=True)
    )


async def delete_winner(session: AsyncSession, winner_id: int) -> GoldWinner:
    winner = await session.get(GoldWinner, winner_id)
    if winner is None:
        raise NotFoundError("Winner not found")
    await session.delete(winner)
    await session.commit()
    logger.info("winner %s deleted", winner_id)
    return winner
