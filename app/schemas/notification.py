from datetime import datetime
from typing import Dict, List, Optional
from pydantic import Field

from app.schemas.common import CamelModel

class TokenRegisterIn(CamelModel):
    user_id: int
    token: str = Field(min_length=1)

class GlobalNotificationIn(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    body: str = Field(min_length=1)
    data: Optional[Dict[str, str]] = None

class NotificationUser(CamelModel):
    id: int
    name: str
    email: Optional[str] = None

class NotificationOut(CamelModel):
    id: int
    user_id: Optional[int] = None
    title: str
    body: str
    data: Optional[dict] = None
    is_read: bool
    created_at: Optional[datetime] = None

class NotificationWithUser(NotificationOut):
    user: Optional[NotificationUser] = None

class NotificationList(CamelModel):
    notifications: List[NotificationOut]

class AdminNotificationList(CamelModel):
    notifications: List[NotificationWithUser]

class TokenRegisterOut(CamelModel):
    user: NotificationUser
    subscribed: bool = False
