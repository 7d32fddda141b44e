from typing import Optional

from fastapi import Request

from agenda.core.celery import NotificationPublisher
from agenda.core.redis import RedisClient


async def get_slot_locks(request: Request) -> Optional[RedisClient]:
    """Slot lock backend, or None when Redis is not configured."""
    return getattr(request.app.state, "redis", None)


async def get_notifier(request: Request) -> Optional[NotificationPublisher]:
    return getattr(request.app.state, "notifier", None)
