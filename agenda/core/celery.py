from typing import Any

import structlog
from celery import Celery
from fastapi.concurrency import run_in_threadpool

from agenda.core.config import settings

logger = structlog.get_logger(__name__)

# Producer-side Celery app. Notification delivery runs in a separate worker
# that consumes the notifications queue; tasks are sent by name.
celery_app = Celery(
    "agenda",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.TIMEZONE,
    enable_utc=True,
    task_ignore_result=True,
    task_routes={
        "notifications.*": {"queue": settings.NOTIFICATIONS_QUEUE},
    },
    broker_connection_retry_on_startup=False,
)


class NotificationPublisher:
    """Hands booking notifications to the external delivery worker."""

    BOOKING_CONFIRMED = "notifications.booking_confirmed"
    BOOKING_CANCELLED = "notifications.booking_cancelled"

    def __init__(self, app: Celery = celery_app, enabled: bool = True):
        self.app = app
        self.enabled = enabled

    async def publish(self, task_name: str, payload: dict[str, Any]) -> bool:
        """Send a notification task. Delivery failures never fail the caller.

        ``send_task`` talks to the broker synchronously, so it runs in the
        threadpool to keep the event loop free.
        """
        if not self.enabled:
            logger.debug("Notifications disabled, skipping", task=task_name)
            return False
        try:
            await run_in_threadpool(self.app.send_task, task_name, kwargs=payload)
            logger.info("Notification queued", task=task_name)
            return True
        except Exception as e:
            logger.error("Failed to queue notification", task=task_name, exc_info=e)
            return False
