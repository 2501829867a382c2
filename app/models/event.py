from __future__ import annotations
from datetime import datetime
from typing import List
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, func
from app.db.session import Base
from app.db.types import BigId, Blob
from app.models.user import User

class Event(Base):
    __tablename__ = "event"

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    event_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    place: Mapped[str | None] = mapped_column(String(255))
    timing: Mapped[str | None] = mapped_column(String(64))
    highlights: Mapped[str | None] = mapped_column(Text)
    event_type: Mapped[str | None] = mapped_column(String(64))
    image: Mapped[bytes | None] = mapped_column(Blob)
    is_finished: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    registrations: Mapped[List[EventRegistration]] = relationship(
        back_populates="event", order_by="EventRegistration.id"
    )


class EventRegistration(Base):
    __tablename__ = "event_registration"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_registration_event_user"),
    )

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("event.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False, index=True)
    is_attended: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    event: Mapped[Event] = relationship(back_populates="registrations")
    user: Mapped[User] = relationship()
