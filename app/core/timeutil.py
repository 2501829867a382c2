import pytz
from datetime import datetime
from app.core.config import settings

TZ = pytz.timezone(settings.TZ)

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

def now_local() -> datetime:
    return datetime.now(TZ)

def to_naive(dt: datetime) -> datetime:
    if dt.tzinfo:
        return dt.astimezone(TZ).replace(tzinfo=None)
    return dt

def get_now() -> datetime:
    """路由依赖：当前本地时间（naive），测试里可 override。"""
    return to_naive(now_local())

def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1

def month_name(month: int) -> str:
    return MONTH_NAMES[month - 1]
