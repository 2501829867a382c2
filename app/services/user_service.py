# app/services/user_service.py
import logging
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ConflictError, NotFoundError, UnauthorizedError
from app.core.security import create_access_token, hash_password, verify_password
from app.models.gold import GoldLot, GoldPayment, GoldProgram
from app.models.investment import LongTermInvestment
from app.models.user import User
from app.schemas.user import (
    AmountPoint, GoldLotSummary, GoldProgramsSummary, InvestmentSummary,
    LastPayment, LastWin, MeOut, ProfileOut, RegisterIn, UserOut,
)

logger = logging.getLogger(__name__)


async def register(session: AsyncSession, data: RegisterIn) -> User:
    conds = [User.email == data.email]
    if data.member_id:
        conds.append(User.member_id == data.member_id)
    exists = await session.scalar(select(User.id).where(or_(*conds)))
    if exists:
        raise ConflictError("User already exists")

    u = User(
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password),
        phone_number=data.phone_number,
        member_id=data.member_id,
        gender=data.gender,
        is_admin=False,
    )
    session.add(u)
    await session.commit()
    await session.refresh(u)
    logger.info("user %s registered", u.id)
    return u


async def login(session: AsyncSession, email: str, password: str) -> str:
    u = await session.scalar(select(User).where(User.email == email))
    if not u or not verify_password(password, u.password_hash):
        raise UnauthorizedError("Invalid email or password")
    return create_access_token(subject=u.id)


def _lot_summary(lot: GoldLot) -> GoldLotSummary:
    last_payment = max(lot.payments, key=lambda p: (p.year, p.month), default=None)
    last_win = max(lot.winners, key=lambda w: (w.year, w.month), default=None)
    return GoldLotSummary(
        lot_id=lot.id,
        program_id=lot.program.id,
        program_name=lot.program.name,
        last_payment=LastPayment.model_validate(last_payment) if last_payment else None,
        has_won=bool(lot.winners),
        last_win=LastWin.model_validate(last_win) if last_win else None,
    )


def _investment_summary(inv: LongTermInvestment) -> InvestmentSummary:
    history = [AmountPoint(date=d.deposit_date, amount=d.amount) for d in inv.deposits]
    cumulative = []
    running = Decimal("0")
    for d in inv.deposits:
        running += Decimal(str(d.amount))
        cumulative.append(AmountPoint(date=d.deposit_date, amount=running))
    return InvestmentSummary(
        investment_id=inv.id,
        total_deposited=inv.total_deposited or 0,
        total_profit=inv.total_profit or 0,
        profit_distributed=inv.profit_distributed or 0,
        profit_pending=inv.profit_pending or 0,
        last_deposit=history[-1] if history else None,
        deposit_history=history,
        cumulative_investment=cumulative,
    )


async def get_me(session: AsyncSession, user_id: int) -> MeOut:
    """当前用户资料 + 进行中期次的 lot 概况 + 长期投资概况"""
    user = await session.scalar(
        select(User).where(User.id == user_id).options(selectinload(User.profile))
    )
    if user is None:
        raise NotFoundError("Profile not found")

    rs = await session.execute(
        select(GoldLot)
        .join(GoldProgram, GoldProgram.id == GoldLot.program_id)
        .where(GoldLot.user_id == user_id, GoldProgram.is_active.is_(True))
        .options(
            selectinload(GoldLot.program),
            selectinload(GoldLot.payments),
            selectinload(GoldLot.winners),
        )
        .order_by(GoldLot.id)
    )
    lots = list(rs.scalars().all())

    total_payments = int(await session.scalar(
        select(func.count(GoldPayment.id))
        .join(GoldLot, GoldLot.id == GoldPayment.lot_id)
        .join(GoldProgram, GoldProgram.id == GoldLot.program_id)
        .where(
            GoldLot.user_id == user_id,
            GoldProgram.is_active.is_(True),
            GoldPayment.is_paid.is_(True),
        )
    ) or 0)

    investment = await session.scalar(
        select(LongTermInvestment)
        .where(LongTermInvestment.user_id == user_id, LongTermInvestment.is_active.is_(True))
        .options(selectinload(LongTermInvestment.deposits))
        .limit(1)
    )

    return MeOut(
        **UserOut.model_validate(user).model_dump(),
        membership_id=user.member_id,
        profile=ProfileOut.model_validate(user.profile) if user.profile else None,
        gold_programs=GoldProgramsSummary(
            count=len(lots),
            total_payments=total_payments,
            details=[_lot_summary(l) for l in lots],
        ),
        long_term_investment=_investment_summary(investment) if investment else None,
    )
