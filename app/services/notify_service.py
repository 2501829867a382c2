# app/services/notify_service.py
"""
推送通知（Firebase Cloud Messaging，按 topic 群发）。
所有推送都是 best-effort：失败只记日志，不影响调用方。
"""
import logging
from typing import Dict, Optional

import firebase_admin
from firebase_admin import credentials, messaging
from starlette.concurrency import run_in_threadpool

from app.core.config import settings

logger = logging.getLogger(__name__)

_firebase_app: Optional[firebase_admin.App] = None


def get_firebase_app() -> Optional[firebase_admin.App]:
    global _firebase_app
    if _firebase_app is None:
        if not settings.FIREBASE_CREDENTIALS:
            return None
        cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS)
        _firebase_app = firebase_admin.initialize_app(cred)
    return _firebase_app


async def send_global_notification(
    title: str, body: str, data: Optional[Dict[str, str]] = None, topic: Optional[str] = None
) -> Optional[str]:
    try:
        fb_app = get_firebase_app()
        if fb_app is None:
            logger.warning("push skipped, FIREBASE_CREDENTIALS not configured: %s", title)
            return None
        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data={k: str(v) for k, v in (data or {}).items()},
            topic=topic or settings.NOTIFY_TOPIC,
        )
        message_id = await run_in_threadpool(messaging.send, message, app=fb_app)
        logger.info("notification sent: %s", message_id)
        return message_id
    except Exception:
        logger.exception("notification error: %s", title)
        return None


async def subscribe_to_topic(token: str, topic: Optional[str] = None) -> bool:
    try:
        fb_app = get_firebase_app()
        if fb_app is None:
            return False
        await run_in_threadpool(
            messaging.subscribe_to_topic, [token], topic or settings.NOTIFY_TOPIC, app=fb_app
        )
        return True
    except Exception:
        logger.exception("error subscribing token to topic")
        return False
