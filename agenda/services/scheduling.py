from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

import structlog
from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from agenda.core.exceptions import DataStoreError, InvalidInputError, NotFoundError
from agenda.models.appointment import Appointment, AppointmentStatus
from agenda.models.professional import Professional
from agenda.models.service import Service
from agenda.models.time_block import TimeBlock
from agenda.models.working_hours import Weekday, WorkingHours
from agenda.schemas.scheduling import (
    AvailabilityRequest,
    BreakPeriod,
    BusyInterval,
    DaySchedule,
    WeeklySchedule,
    WorkHours,
)
from agenda.services.availability import AvailabilityCalculator
from agenda.utils.timezone import day_bounds, local_now, to_local_naive

logger = structlog.get_logger(__name__)


def parse_public_id(value: str) -> Optional[UUID]:
    """Public ids are UUID strings; anything else cannot resolve."""
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def build_weekly_schedule(working_hours: Iterable[WorkingHours]) -> WeeklySchedule:
    """Convert stored working-hours rows into a weekly schedule."""
    schedule: WeeklySchedule = {}
    for row in working_hours:
        try:
            weekday = Weekday(row.weekday)
        except ValueError:
            logger.warning(
                "Ignoring working hours with unknown weekday",
                working_hours_id=row.id,
                weekday=row.weekday,
            )
            continue

        schedule[weekday] = DaySchedule(
            is_active=row.is_active,
            work_hours=WorkHours(start=row.start_time, end=row.end_time),
            breaks=[
                BreakPeriod(start=period.start_time, end=period.end_time)
                for period in row.breaks
            ],
        )
    return schedule


class SchedulingService:
    """Loads a professional's schedule and busy periods and computes slots."""

    def __init__(
        self, db: AsyncSession, calculator: Optional[AvailabilityCalculator] = None
    ):
        self.db = db
        self.calculator = calculator or AvailabilityCalculator()

    async def get_available_slots(
        self, request: AvailabilityRequest, now: Optional[datetime] = None
    ) -> List[datetime]:
        """Available slot starts (local wall-clock) for the requested day."""
        if request.date is None or not request.professional_id or not request.service_id:
            raise InvalidInputError(
                "Missing required parameters: date, professionalId, serviceId"
            )

        professional, service = await self.resolve_professional_and_service(
            request.professional_id, request.service_id
        )
        day = to_local_naive(request.date).date()

        return await self.compute_slots(professional, service, day, now=now)

    async def compute_slots(
        self,
        professional: Professional,
        service: Service,
        day: date,
        now: Optional[datetime] = None,
    ) -> List[datetime]:
        now = to_local_naive(now) if now is not None else local_now()
        schedule = self.get_weekly_schedule(professional)

        # Inactive days need no busy-interval reads
        if self.calculator.resolve_day_schedule(day, schedule) is None:
            logger.info(
                "Professional not working on requested day",
                professional_id=str(professional.uuid),
                date=day.isoformat(),
            )
            return []

        busy_intervals = await self.get_busy_intervals(professional.id, day)

        slots = self.calculator.compute_available_slots(
            target_date=day,
            work_schedule=schedule,
            duration_minutes=service.duration_minutes,
            busy_intervals=busy_intervals,
            now=now,
        )

        logger.info(
            "Availability computed",
            professional_id=str(professional.uuid),
            service_id=str(service.uuid),
            date=day.isoformat(),
            busy_count=len(busy_intervals),
            slot_count=len(slots),
        )
        return slots

    def get_weekly_schedule(self, professional: Professional) -> WeeklySchedule:
        return build_weekly_schedule(professional.working_hours)

    async def resolve_professional_and_service(
        self, professional_id: str, service_id: str
    ) -> Tuple[Professional, Service]:
        """Look up both references or fail with NotFoundError."""
        professional = await self.get_professional(professional_id)
        service = await self.get_service(service_id)

        if (
            not professional
            or not service
            or service.professional_id != professional.id
        ):
            logger.warning(
                "Professional or service not found",
                professional_id=professional_id,
                service_id=service_id,
            )
            raise NotFoundError(
                "Professional or service not found",
                professional_id=professional_id,
                service_id=service_id,
            )
        return professional, service

    async def get_professional(self, professional_id: str) -> Optional[Professional]:
        """Active professional by public id, with working hours and breaks."""
        key = parse_public_id(professional_id)
        if key is None:
            return None

        query = (
            select(Professional)
            .options(
                selectinload(Professional.working_hours).selectinload(
                    WorkingHours.breaks
                )
            )
            .where(and_(Professional.uuid == key, Professional.is_active))
        )
        return await self._scalar_one_or_none(query, "professional")

    async def get_service(self, service_id: str) -> Optional[Service]:
        """Active service by public id."""
        key = parse_public_id(service_id)
        if key is None:
            return None

        query = select(Service).where(and_(Service.uuid == key, Service.is_active))
        return await self._scalar_one_or_none(query, "service")

    async def get_busy_intervals(
        self, professional_id: int, day: date
    ) -> List[BusyInterval]:
        """Non-cancelled appointments and time blocks overlapping ``day``."""
        day_start, day_end = day_bounds(day)

        appointments_query = select(
            Appointment.start_datetime, Appointment.end_datetime
        ).where(
            and_(
                Appointment.professional_id == professional_id,
                Appointment.status != AppointmentStatus.CANCELLED.value,
                Appointment.start_datetime < day_end,
                Appointment.end_datetime > day_start,
            )
        )
        blocks_query = select(TimeBlock.start_datetime, TimeBlock.end_datetime).where(
            and_(
                TimeBlock.professional_id == professional_id,
                TimeBlock.start_datetime < day_end,
                TimeBlock.end_datetime > day_start,
            )
        )

        try:
            appointments = (await self.db.execute(appointments_query)).all()
            blocks = (await self.db.execute(blocks_query)).all()
        except SQLAlchemyError as e:
            logger.error(
                "Failed to load busy intervals",
                professional_id=professional_id,
                date=day.isoformat(),
                exc_info=e,
            )
            raise DataStoreError("Failed to load busy intervals") from e

        busy = [
            BusyInterval(start=start, end=end, source="appointment")
            for start, end in appointments
        ]
        busy.extend(
            BusyInterval(start=start, end=end, source="time_block")
            for start, end in blocks
        )
        return busy

    async def _scalar_one_or_none(self, query, entity: str):
        try:
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load {entity}", exc_info=e)
            raise DataStoreError(f"Failed to load {entity}") from e
