# 首页展示用的内容表（后台维护，这里只读）
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, DateTime, func
from app.db.session import Base
from app.db.types import BigId, Blob

class Service(Base):
    __tablename__ = "service"

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str | None] = mapped_column(String(255))
    starting_time: Mapped[str | None] = mapped_column(String(16))
    stopping_time: Mapped[str | None] = mapped_column(String(16))
    available_days: Mapped[str | None] = mapped_column(String(128))
    image: Mapped[bytes | None] = mapped_column(Blob)
    phone_number: Mapped[str | None] = mapped_column(String(32))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

class Job(Base):
    __tablename__ = "job"

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    logo: Mapped[bytes | None] = mapped_column(Blob)
    position: Mapped[str] = mapped_column(String(255), nullable=False)
    job_mode: Mapped[str | None] = mapped_column(String(32))
    salary: Mapped[str | None] = mapped_column(String(64))
    place: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

class Banner(Base):
    __tablename__ = "banner"

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    image: Mapped[bytes | None] = mapped_column(Blob)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

class News(Base):
    __tablename__ = "news"

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    type: Mapped[str | None] = mapped_column(String(32))
    heading: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str | None] = mapped_column(Text)
    author: Mapped[str | None] = mapped_column(String(128))
    image: Mapped[bytes | None] = mapped_column(Blob)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
