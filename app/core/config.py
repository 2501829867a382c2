import os
from dotenv import load_dotenv
load_dotenv()

class Settings:
    APP_NAME = os.getenv("APP_NAME", "kmcc-api")
    APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
    APP_ENV = os.getenv("APP_ENV", "dev")
    APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT = int(os.getenv("APP_PORT", "8000"))
    TZ = os.getenv("TZ", "Asia/Riyadh")

    MYSQL_DSN = (
        f"mysql+aiomysql://{os.getenv('MYSQL_USER','root')}:{os.getenv('MYSQL_PASSWORD','123456')}"
        f"@{os.getenv('MYSQL_HOST','127.0.0.1')}:{os.getenv('MYSQL_PORT','3306')}/{os.getenv('MYSQL_DB','kmcc')}?charset=utf8mb4"
    )
    # 本地 / 测试可直接给 sqlite+aiosqlite:///...
    DATABASE_URL = os.getenv("DATABASE_URL") or MYSQL_DSN

    JWT_SECRET = os.getenv("JWT_SECRET", "change_me")
    JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "43200"))
    PASSWORD_SALT = os.getenv("PASSWORD_SALT", "change_me")

    FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS", "")
    NOTIFY_TOPIC = os.getenv("NOTIFY_TOPIC", "global")

    HOME_EVENTS_LIMIT = int(os.getenv("HOME_EVENTS_LIMIT", "4"))
    HOME_SERVICES_LIMIT = int(os.getenv("HOME_SERVICES_LIMIT", "4"))
    HOME_JOBS_LIMIT = int(os.getenv("HOME_JOBS_LIMIT", "4"))
    HOME_NEWS_LIMIT = int(os.getenv("HOME_NEWS_LIMIT", "5"))
    HOME_TRAVELS_LIMIT = int(os.getenv("HOME_TRAVELS_LIMIT", "4"))

settings = Settings()
