from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import List
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Numeric, Boolean, DateTime, ForeignKey, func
from app.db.session import Base
from app.db.types import BigId

class LongTermInvestment(Base):
    __tablename__ = "long_term_investment"

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False, index=True)
    total_deposited: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0)
    total_profit: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0)
    profit_distributed: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0)
    profit_pending: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    deposits: Mapped[List[InvestmentDeposit]] = relationship(
        back_populates="investment", order_by="InvestmentDeposit.deposit_date"
    )


class InvestmentDeposit(Base):
    __tablename__ = "investment_deposit"

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    investment_id: Mapped[int] = mapped_column(ForeignKey("long_term_investment.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    deposit_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    investment: Mapped[LongTermInvestment] = relationship(back_populates="deposits")
