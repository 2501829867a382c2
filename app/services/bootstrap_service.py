from app.db.session import engine, Base

# 注册全部模型到 Base.metadata
import app.models.user  # noqa: F401
import app.models.gold  # noqa: F401
import app.models.event  # noqa: F401
import app.models.content  # noqa: F401
import app.models.travel  # noqa: F401
import app.models.notification  # noqa: F401
import app.models.investment  # noqa: F401

async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

async def drop_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
