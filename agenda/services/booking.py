from datetime import datetime, timedelta
from typing import Optional, Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from agenda.core.celery import NotificationPublisher
from agenda.core.exceptions import (
    DataStoreError,
    InvalidInputError,
    NotFoundError,
    SlotUnavailableError,
)
from agenda.models.appointment import Appointment, AppointmentStatus
from agenda.models.client import Client
from agenda.schemas.booking import BookingCreate
from agenda.services.availability import AvailabilityCalculator
from agenda.services.scheduling import SchedulingService, parse_public_id
from agenda.utils.timezone import localize, to_local_naive

logger = structlog.get_logger(__name__)


class SlotLockProtocol(Protocol):
    """Short-lived advisory lock on a professional's slot."""

    async def acquire_slot_lock(self, professional_id: int, start: datetime) -> bool:
        """Return False when the lock is already held."""

    async def release_slot_lock(self, professional_id: int, start: datetime) -> bool:
        """Release a previously acquired lock."""


class BookingService:
    """Creates and cancels bookings.

    Availability is re-checked at write time, and the partial unique index on
    ``(professional_id, start_datetime)`` rejects a concurrent duplicate that
    slips past the advisory slot lock.
    """

    def __init__(
        self,
        db: AsyncSession,
        slot_locks: Optional[SlotLockProtocol] = None,
        notifier: Optional[NotificationPublisher] = None,
        calculator: Optional[AvailabilityCalculator] = None,
    ):
        self.db = db
        self.scheduling = SchedulingService(db, calculator)
        self.slot_locks = slot_locks
        self.notifier = notifier

    async def create_booking(
        self, booking_data: BookingCreate, now: Optional[datetime] = None
    ) -> Appointment:
        """Create a confirmed appointment for an available slot."""
        professional, service = await self.scheduling.resolve_professional_and_service(
            booking_data.professional_id, booking_data.service_id
        )
        slot_start = to_local_naive(booking_data.slot_start)
        # Rollbacks expire loaded instances; keep plain copies of the keys
        professional_pk = professional.id
        professional_uuid = str(professional.uuid)

        locked = await self._acquire_lock(professional_pk, slot_start)
        try:
            available = await self.scheduling.compute_slots(
                professional, service, slot_start.date(), now=now
            )
            if slot_start not in available:
                logger.info(
                    "Requested slot is not available",
                    professional_id=professional_uuid,
                    slot_start=slot_start.isoformat(),
                )
                raise SlotUnavailableError(
                    "The selected slot is no longer available",
                    slot_start=slot_start.isoformat(),
                )

            client = await self._upsert_client(booking_data)

            appointment = Appointment(
                professional=professional,
                service=service,
                client=client,
                start_datetime=slot_start,
                end_datetime=slot_start + timedelta(minutes=service.duration_minutes),
                duration_minutes=service.duration_minutes,
                status=AppointmentStatus.CONFIRMED.value,
                notes=booking_data.notes,
            )
            self.db.add(appointment)

            try:
                await self.db.commit()
            except IntegrityError as e:
                await self.db.rollback()
                logger.warning(
                    "Slot taken by a concurrent booking",
                    professional_id=professional_uuid,
                    slot_start=slot_start.isoformat(),
                    error=str(e.orig),
                )
                raise SlotUnavailableError(
                    "The selected slot is no longer available",
                    slot_start=slot_start.isoformat(),
                ) from e
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error("Failed to create booking", exc_info=e)
                raise DataStoreError("Failed to create booking") from e
        finally:
            if locked:
                await self.slot_locks.release_slot_lock(professional_pk, slot_start)

        logger.info(
            "Booking created",
            booking_id=str(appointment.uuid),
            professional_id=professional_uuid,
            service_id=str(service.uuid),
            slot_start=slot_start.isoformat(),
        )
        await self._notify(NotificationPublisher.BOOKING_CONFIRMED, appointment)
        return appointment

    async def get_booking(self, booking_id: str) -> Appointment:
        key = parse_public_id(booking_id)
        appointment = None
        if key is not None:
            query = (
                select(Appointment)
                .options(
                    selectinload(Appointment.professional),
                    selectinload(Appointment.service),
                    selectinload(Appointment.client),
                )
                .where(Appointment.uuid == key)
            )
            try:
                appointment = (await self.db.execute(query)).scalar_one_or_none()
            except SQLAlchemyError as e:
                logger.error("Failed to load booking", booking_id=booking_id, exc_info=e)
                raise DataStoreError("Failed to load booking") from e

        if appointment is None:
            raise NotFoundError("Booking not found", booking_id=booking_id)
        return appointment

    async def cancel_booking(self, booking_id: str) -> Appointment:
        """Cancel a booking; its slot becomes available again."""
        appointment = await self.get_booking(booking_id)

        if not appointment.cancel():
            raise InvalidInputError("Booking is already cancelled", booking_id=booking_id)

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to cancel booking", booking_id=booking_id, exc_info=e)
            raise DataStoreError("Failed to cancel booking") from e

        logger.info("Booking cancelled", booking_id=booking_id)
        await self._notify(NotificationPublisher.BOOKING_CANCELLED, appointment)
        return appointment

    async def _acquire_lock(self, professional_id: int, slot_start: datetime) -> bool:
        if self.slot_locks is None:
            return False
        try:
            acquired = await self.slot_locks.acquire_slot_lock(professional_id, slot_start)
        except Exception as e:
            # The unique index still guards the write
            logger.warning(
                "Slot lock unavailable, continuing without it",
                professional_id=professional_id,
                error=str(e),
            )
            return False

        if not acquired:
            raise SlotUnavailableError(
                "The selected slot is being booked by someone else",
                slot_start=slot_start.isoformat(),
            )
        return True

    async def _upsert_client(self, booking_data: BookingCreate) -> Client:
        email = booking_data.client_email.strip().lower()
        try:
            result = await self.db.execute(select(Client).where(Client.email == email))
            client = result.scalar_one_or_none()

            if client is None:
                client = Client(
                    name=booking_data.client_name,
                    email=email,
                    phone=booking_data.client_phone,
                )
                self.db.add(client)
                logger.info("Client registered", email=email)
            else:
                client.name = booking_data.client_name
                if booking_data.client_phone:
                    client.phone = booking_data.client_phone

            await self.db.flush()
            return client
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to save client", email=email, exc_info=e)
            raise DataStoreError("Failed to save client") from e

    async def _notify(self, task_name: str, appointment: Appointment) -> None:
        if self.notifier is None:
            return
        await self.notifier.publish(
            task_name,
            {
                "booking_id": str(appointment.uuid),
                "professional_name": appointment.professional.display_name,
                "professional_email": appointment.professional.email,
                "service_name": appointment.service.name,
                "client_name": appointment.client.name,
                "client_email": appointment.client.email,
                "client_phone": appointment.client.phone,
                "start": localize(appointment.start_datetime).isoformat(),
                "end": localize(appointment.end_datetime).isoformat(),
                "status": appointment.status,
            },
        )
