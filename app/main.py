# app/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.errors import register_exception_handlers

from app.routers.gold import router as gold_router
from app.routers.user import router as user_router
from app.routers.travel import router as travel_router
from app.routers.notification import router as notification_router
import logging, sys

from app.services.bootstrap_service import init_db

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logging.getLogger("uvicorn").setLevel(logging.WARNING)
logging.getLogger("uvicorn.error").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.CRITICAL)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

# 业务日志（开期/中奖/缴费/推送）保留 INFO
logging.getLogger("app").setLevel(logging.INFO)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(gold_router)
app.include_router(user_router)
app.include_router(travel_router)
app.include_router(notification_router)


@app.get("/ping")
async def ping():
    return {"ok": True, "env": settings.APP_ENV}


@app.get("/healthz")
async def healthz():
    return {"status": "healthy"}


# 启动时建表
@app.on_event("startup")
async def on_startup() -> None:
    await init_db()
