from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_admin_user, get_current_user
from app.db.session import get_session
from app.models.user import User
from app.schemas.common import ApiResponse, ok
from app.schemas.notification import (
    AdminNotificationList, GlobalNotificationIn, NotificationList, NotificationOut,
    NotificationUser, NotificationWithUser, TokenRegisterIn, TokenRegisterOut,
)
from app.services import notification_service
from app.services.notify_service import send_global_notification, subscribe_to_topic

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.post("/register-token", response_model=ApiResponse[TokenRegisterOut])
async def register_token(payload: TokenRegisterIn, session: AsyncSession = Depends(get_session)):
    user = await notification_service.register_token(session, payload.user_id, payload.token)
    subscribed = await subscribe_to_topic(payload.token)
    data = TokenRegisterOut(user=NotificationUser.model_validate(user), subscribed=subscribed)
    return ok(data, "FCM token registered successfully")


@router.post("/global", response_model=ApiResponse[NotificationOut])
async def send_global(
        payload: GlobalNotificationIn,
        background: BackgroundTasks,
        session: AsyncSession = Depends(get_session),
        admin: User = Depends(get_admin_user),
):
    n = await notification_service.create_global(session, payload.title, payload.body, payload.data)
    background.add_task(
        send_global_notification, payload.title, payload.body, notification_service.ADMIN_PUSH_DATA
    )
    return ok(NotificationOut.model_validate(n), "Global notification sent successfully")


@router.get("/user", response_model=ApiResponse[NotificationList])
async def user_notifications(
        limit: int = Query(20, ge=1, le=100),
        offset: int = Query(0, ge=0),
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    rows = await notification_service.list_for_user(session, current_user.id, limit, offset)
    data = NotificationList(notifications=[NotificationOut.model_validate(n) for n in rows])
    return ok(data, "Notifications fetched")


@router.get("/admin/all", response_model=ApiResponse[AdminNotificationList])
async def all_notifications(
        limit: int = Query(20, ge=1, le=100),
        offset: int = Query(0, ge=0),
        session: AsyncSession = Depends(get_session),
        admin: User = Depends(get_admin_user),
):
    rows = await notification_service.list_all(session, limit, offset)
    data = AdminNotificationList(notifications=[NotificationWithUser.model_validate(n) for n in rows])
    return ok(data, "All notifications fetched")


@router.patch("/{notification_id}/read", response_model=ApiResponse[None])
async def mark_read(
        notification_id: int,
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    await notification_service.mark_as_read(session, notification_id, current_user)
    return ok(None, "Notification marked as read")
