from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.api.deps.database import get_db
from agenda.api.deps.services import get_notifier, get_slot_locks
from agenda.core.celery import NotificationPublisher
from agenda.core.redis import RedisClient
from agenda.schemas.booking import BookingCreate, BookingRead
from agenda.services.booking import BookingService

router = APIRouter()


def _booking_service(
    db: AsyncSession = Depends(get_db),
    slot_locks: Optional[RedisClient] = Depends(get_slot_locks),
    notifier: Optional[NotificationPublisher] = Depends(get_notifier),
) -> BookingService:
    return BookingService(db, slot_locks=slot_locks, notifier=notifier)


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    service: BookingService = Depends(_booking_service),
):
    """Book a slot previously offered by the availability endpoint.

    The service must belong to the professional, otherwise 404. A slot that is
    no longer free gives 409.
    """
    appointment = await service.create_booking(booking_data)
    return BookingRead.from_model(appointment)


@router.get("/{booking_id}", response_model=BookingRead)
async def get_booking(
    booking_id: str, service: BookingService = Depends(_booking_service)
):
    appointment = await service.get_booking(booking_id)
    return BookingRead.from_model(appointment)


@router.post("/{booking_id}/cancel", response_model=BookingRead)
async def cancel_booking(
    booking_id: str, service: BookingService = Depends(_booking_service)
):
    """Cancel a booking and release its slot."""
    appointment = await service.cancel_booking(booking_id)
    return BookingRead.from_model(appointment)
