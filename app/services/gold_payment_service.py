# app/services/gold_payment_service.py
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.gold import GoldLot, GoldPayment

logger = logging.getLogger(__name__)

PAYMENT_KEY = ("lot_id", "year", "month")


def validate_period(year: int, month: int) -> None:
    if not 1 <= int(month) <= 12:
        raise ValidationError(f"Invalid month: {month}")
    if int(year) < 1:
        raise ValidationError(f"Invalid year: {year}")


def build_payment_upsert(dialect_name: str, lot_id: int, year: int, month: int, now: datetime):
    """按方言生成 (lot_id, year, month) 的原生 upsert 语句。"""
    values = dict(lot_id=lot_id, year=year, month=month, is_paid=True, paid_at=now)
    if dialect_name == "mysql":
        stmt = mysql_insert(GoldPayment).values(**values)
        return stmt.on_duplicate_key_update(is_paid=True, paid_at=stmt.inserted.paid_at)
    if dialect_name in ("sqlite", "postgresql"):
        insert = sqlite_insert if dialect_name == "sqlite" else pg_insert
        stmt = insert(GoldPayment).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=list(PAYMENT_KEY),
            set_={"is_paid": True, "paid_at": stmt.excluded.paid_at},
        )
    raise NotImplementedError(f"payment upsert not supported on {dialect_name}")


async def record_payment(
    session: AsyncSession,
    lot_id: Optional[int],
    year: Optional[int],
    month: Optional[int],
    now: datetime,
) -> GoldPayment:
    """幂等记账：同一 (lot, year, month) 只有一行，重复调用只刷新 paid_at。"""
    if not lot_id or not year or not month:
        raise ValidationError("Lot ID, year and month are required")
    validate_period(year, month)

    lot = await session.get(GoldLot, lot_id)
    if lot is None:
        raise NotFoundError("Lot not found")

    try:
        await session.execute(
            build_payment_upsert(session.bind.dialect.name, lot_id, year, month, now)
        )
        payment = await session.scalar(
            select(GoldPayment)
            .where(
                GoldPayment.lot_id == lot_id,
                GoldPayment.year == year,
                GoldPayment.month == month,
            )
            .options(selectinload(GoldPayment.lot))
            .execution_options(populate_existing=True)
        )
        await session.commit()
    except Exception:
        await session.rollback(); raise

    logger.info("payment recorded: lot=%s %04d-%02d", lot_id, year, month)
    return payment


async def update_payment(
    session: AsyncSession,
    payment_id: int,
    year: int,
    month: int,
    lot_id: int,
    now: datetime,
) -> GoldPayment:
    """只改 year / month / paid_at；lot_id 仅用于重复校验。"""
    validate_period(year, month)

    payment = await session.get(GoldPayment, payment_id)
    if payment is None:
        raise NotFoundError("Payment not found")

    existing = await session.scalar(
        select(GoldPayment.id).where(
            GoldPayment.id != payment_id,
            GoldPayment.lot_id == lot_id,
            GoldPayment.year == year,
            GoldPayment.month == month,
        )
    )
    if existing is not None:
        raise ConflictError("Payment already exists for this month/year")

    payment.year = year
    payment.month = month
    payment.paid_at = now
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError("Payment already exists for this month/year") from e
    logger.info("payment %s moved to %04d-%02d", payment_id, year, month)
    return payment


async def delete_payment(session: AsyncSession, payment_id: int) -> GoldPayment:
    payment = await session.get(GoldPayment, payment_id)
    if payment is None:
        raise NotFoundError("Payment not found")
    await session.delete(payment)
    await session.commit()
    logger.info("payment %s deleted", payment_id)
    return payment
