# app/services/notification_service.py
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ForbiddenError, NotFoundError
from app.models.notification import Notification
from app.models.user import User

logger = logging.getLogger(__name__)

ADMIN_PUSH_DATA = {"type": "admin"}


async def register_token(session: AsyncSession, user_id: int, token: str) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    user.fcm_token = token
    await session.commit()
    return user


async def create_global(
    session: AsyncSession, title: str, body: str, data: Optional[dict] = None
) -> Notification:
    n = Notification(title=title, body=body, data=data or {}, is_read=False)
    session.add(n)
    await session.commit()
    await session.refresh(n)
    logger.info("global notification %s stored", n.id)
    return n


async def list_for_user(session: AsyncSession, user_id: int, limit: int, offset: int) -> List[Notification]:
    rs = await session.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(rs.scalars().all())


async def list_all(session: AsyncSession, limit: int, offset: int) -> List[Notification]:
    rs = await session.execute(
        select(Notification)
        .options(selectinload(Notification.user))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(rs.scalars().all())


async def mark_as_read(session: AsyncSession, notification_id: int, user: User) -> None:
    n = await session.get(Notification, notification_id)
    if n is None:
        raise NotFoundError("Notification not found")
    if n.user_id is not None and n.user_id != user.id and not user.is_admin:
        raise ForbiddenError("Not allowed to modify this notification")
    n.is_read = True
    await session.commit()
