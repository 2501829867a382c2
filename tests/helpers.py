import asyncio
import os
import tempfile
from datetime import datetime

# 测试库用临时 sqlite 文件，必须在导入 app 之前设置
_DB_DIR = tempfile.mkdtemp(prefix="kmcc-test-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["FIREBASE_CREDENTIALS"] = ""

from app.core.security import create_access_token
from app.db.session import AsyncSessionLocal
from app.models.user import User

NOW = datetime(2024, 6, 15, 10, 0, 0)


def db_add(*objs):
    """直接写库造数据，返回带主键的对象"""
    async def _add():
        async with AsyncSessionLocal() as s:
            s.add_all(objs)
            await s.commit()
    asyncio.run(_add())
    return objs[0] if len(objs) == 1 else objs


def db_scalars(stmt):
    async def _q():
        async with AsyncSessionLocal() as s:
            return list((await s.execute(stmt)).scalars().all())
    return asyncio.run(_q())


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}
