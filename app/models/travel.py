from __future__ import annotations
from datetime import date, datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Date, DateTime, ForeignKey, func
from app.db.session import Base
from app.db.types import BigId
from app.models.user import User

STATUS_AVAILABLE = "AVAILABLE"
STATUS_ONBOARD = "ONBOARD"
STATUS_NOT_AVAILABLE = "NOT_AVAILABLE"
TRAVEL_STATUSES = (STATUS_AVAILABLE, STATUS_ONBOARD, STATUS_NOT_AVAILABLE)

class Airport(Base):
    __tablename__ = "airport"

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    iata_code: Mapped[str | None] = mapped_column(String(8))
    country: Mapped[str | None] = mapped_column(String(64))


class Travel(Base):
    __tablename__ = "travel"

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False, index=True)
    from_airport_id: Mapped[int] = mapped_column(ForeignKey("airport.id"), nullable=False)
    to_airport_id: Mapped[int] = mapped_column(ForeignKey("airport.id"), nullable=False)
    travel_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    travel_time: Mapped[str] = mapped_column(String(8), nullable=False)  # HH:MM
    status: Mapped[str] = mapped_column(String(16), default=STATUS_AVAILABLE)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    user: Mapped[User] = relationship()
    from_airport: Mapped[Airport] = relationship(foreign_keys=[from_airport_id])
    to_airport: Mapped[Airport] = relationship(foreign_keys=[to_airport_id])
