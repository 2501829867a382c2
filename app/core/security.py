from datetime import datetime, timedelta, timezone
from typing import Optional
from passlib.context import CryptContext
import jwt

from app.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

TOKEN_ALGORITHM = "HS256"


def _salted(raw: str) -> str:
    return f"{raw}:{settings.PASSWORD_SALT}"

def hash_password(raw: str) -> str:
    return pwd_context.hash(_salted(raw))

def verify_password(raw: str, hashed: str) -> bool:
    return pwd_context.verify(_salted(raw), hashed)

def create_access_token(subject: str | int, expires_minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=expires_minutes or settings.JWT_EXPIRE_MINUTES)
    payload = {
        "sub": str(subject),
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp()),
        "iss": settings.APP_NAME,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=TOKEN_ALGORITHM)

def decode_access_token(token: str) -> int:
    """返回 token 里的用户 id；签名/过期/缺字段抛 jwt.PyJWTError 或 ValueError"""
    payload = jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[TOKEN_ALGORITHM],
        options={"require": ["exp", "iat", "sub"]},
    )
    sub = payload.get("sub")
    if not sub:
        raise ValueError("token has no subject")
    return int(sub)
