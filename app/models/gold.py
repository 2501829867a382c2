from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import List
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String, Text, Integer, SmallInteger, Numeric, Boolean, DateTime, ForeignKey,
    UniqueConstraint, func,
)
from app.db.session import Base
from app.db.types import BigId
from app.models.user import User

ACTIVE_SLOT = 1


class GoldProgram(Base):
    __tablename__ = "gold_program"

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    # 进行中=1，结束后置 NULL；唯一约束保证同一时刻只有一个进行中的期
    active_slot: Mapped[int | None] = mapped_column(SmallInteger, unique=True)
    start_date: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    end_date: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    lots: Mapped[List[GoldLot]] = relationship(
        back_populates="program", order_by="GoldLot.id"
    )
    winners: Mapped[List[GoldWinner]] = relationship(
        back_populates="program",
        order_by=lambda: [GoldWinner.year.desc(), GoldWinner.month.asc(), GoldWinner.id.asc()],
    )


class GoldLot(Base):
    __tablename__ = "gold_lot"

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    program_id: Mapped[int] = mapped_column(ForeignKey("gold_program.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    program: Mapped[GoldProgram] = relationship(back_populates="lots")
    user: Mapped[User] = relationship()
    payments: Mapped[List[GoldPayment]] = relationship(
        back_populates="lot",
        order_by=lambda: [GoldPayment.year.asc(), GoldPayment.month.asc()],
    )
    winners: Mapped[List[GoldWinner]] = relationship(
        back_populates="lot",
        order_by=lambda: [GoldWinner.year.asc(), GoldWinner.month.asc()],
    )


class GoldPayment(Base):
    __tablename__ = "gold_payment"
    __table_args__ = (
        UniqueConstraint("lot_id", "year", "month", name="uq_gold_payment_lot_year_month"),
    )

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    lot_id: Mapped[int] = mapped_column(ForeignKey("gold_lot.id"), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    lot: Mapped[GoldLot] = relationship(back_populates="payments")


class GoldWinner(Base):
    __tablename__ = "gold_winner"
    __table_args__ = (
        UniqueConstraint("program_id", "month", "year", name="uq_gold_winner_program_month_year"),
    )

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    program_id: Mapped[int] = mapped_column(ForeignKey("gold_program.id"), nullable=False, index=True)
    lot_id: Mapped[int] = mapped_column(ForeignKey("gold_lot.id"), nullable=False, index=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    prize_amount: Mapped[Decimal | None] = mapped_column(Numeric(16, 2))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    program: Mapped[GoldProgram] = relationship(back_populates="winners")
    lot: Mapped[GoldLot] = relationship(back_populates="winners")
