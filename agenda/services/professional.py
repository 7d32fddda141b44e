from typing import List, Optional

import structlog
from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from agenda.core.exceptions import DataStoreError, InvalidInputError, NotFoundError
from agenda.models.professional import Professional
from agenda.models.service import Service
from agenda.models.time_block import TimeBlock
from agenda.models.working_hours import ScheduleBreak, WorkingHours
from agenda.schemas.professional import (
    ProfessionalCreate,
    ProfessionalProfile,
    ProfessionalSummary,
    ServiceCreate,
    ServiceRead,
    TimeBlockCreate,
)
from agenda.schemas.scheduling import WeeklySchedule
from agenda.services.scheduling import build_weekly_schedule, parse_public_id
from agenda.utils.timezone import to_local_naive

logger = structlog.get_logger(__name__)


class ProfessionalService:
    """Service layer for professionals, their schedules, services and blocks."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def search_professionals(self, query: Optional[str] = None) -> List[Professional]:
        """Active professionals whose display name or email contains ``query``."""
        statement = select(Professional).where(Professional.is_active)

        term = (query or "").strip().lower()
        if term:
            pattern = f"%{term}%"
            statement = statement.where(
                or_(
                    func.lower(Professional.display_name).like(pattern),
                    func.lower(Professional.email).like(pattern),
                )
            )

        statement = statement.order_by(Professional.display_name)

        try:
            result = await self.db.execute(statement)
            professionals = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to search professionals", query=term, exc_info=e)
            raise DataStoreError("Failed to search professionals") from e

        logger.info("Searched professionals", query=term, count=len(professionals))
        return professionals

    async def get_professional(self, professional_id: str) -> Professional:
        """Professional with schedule and services loaded, or NotFoundError."""
        key = parse_public_id(professional_id)
        professional = None
        if key is not None:
            statement = (
                select(Professional)
                .options(
                    selectinload(Professional.working_hours).selectinload(
                        WorkingHours.breaks
                    ),
                    selectinload(Professional.services),
                )
                .where(and_(Professional.uuid == key, Professional.is_active))
            )
            try:
                result = await self.db.execute(statement)
                professional = result.scalar_one_or_none()
            except SQLAlchemyError as e:
                logger.error(
                    "Failed to get professional",
                    professional_id=professional_id,
                    exc_info=e,
                )
                raise DataStoreError("Failed to get professional") from e

        if professional is None:
            logger.warning("Professional not found", professional_id=professional_id)
            raise NotFoundError("Professional not found", professional_id=professional_id)
        return professional

    async def get_profile(self, professional_id: str) -> ProfessionalProfile:
        professional = await self.get_professional(professional_id)
        summary = ProfessionalSummary.from_model(professional)
        return ProfessionalProfile(
            **summary.model_dump(),
            work_schedule=build_weekly_schedule(professional.working_hours),
            services=[
                ServiceRead.from_model(service)
                for service in sorted(professional.services, key=lambda s: s.name)
                if service.is_active
            ],
        )

    async def create_professional(self, data: ProfessionalCreate) -> Professional:
        professional = Professional(
            display_name=data.display_name,
            email=data.email.lower(),
            title=data.title,
            photo_url=data.photo_url,
        )
        professional.working_hours = self._build_working_hours(data.work_schedule)
        self.db.add(professional)

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "Failed to create professional due to integrity constraint",
                error=str(e.orig),
            )
            raise InvalidInputError("A professional with this email already exists") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to create professional", exc_info=e)
            raise DataStoreError("Failed to create professional") from e

        logger.info(
            "Professional created",
            professional_id=str(professional.uuid),
            display_name=professional.display_name,
        )
        return await self.get_professional(str(professional.uuid))

    async def replace_schedule(
        self, professional_id: str, schedule: WeeklySchedule
    ) -> Professional:
        """Replace every weekday entry of the professional's weekly schedule."""
        professional = await self.get_professional(professional_id)

        try:
            # Bulk deletes skip ORM cascades, so breaks go first
            working_hours_ids = select(WorkingHours.id).where(
                WorkingHours.professional_id == professional.id
            )
            await self.db.execute(
                delete(ScheduleBreak).where(
                    ScheduleBreak.working_hours_id.in_(working_hours_ids)
                ).execution_options(synchronize_session="fetch")
            )
            await self.db.execute(
                delete(WorkingHours).where(
                    WorkingHours.professional_id == professional.id
                ).execution_options(synchronize_session="fetch")
            )
            for row in self._build_working_hours(schedule):
                row.professional_id = professional.id
                self.db.add(row)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "Failed to replace schedule", professional_id=professional_id, exc_info=e
            )
            raise DataStoreError("Failed to replace schedule") from e

        logger.info(
            "Schedule replaced",
            professional_id=professional_id,
            weekdays=[weekday.value for weekday in schedule],
        )
        self.db.expire_all()
        return await self.get_professional(professional_id)

    async def add_service(self, professional_id: str, data: ServiceCreate) -> Service:
        professional = await self.get_professional(professional_id)
        service = Service(
            professional_id=professional.id,
            name=data.name,
            description=data.description,
            duration_minutes=data.duration_minutes,
            price=data.price,
        )
        self.db.add(service)

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to create service", exc_info=e)
            raise DataStoreError("Failed to create service") from e

        logger.info(
            "Service created",
            professional_id=professional_id,
            service_id=str(service.uuid),
            duration_minutes=service.duration_minutes,
        )
        return service

    async def add_time_block(
        self, professional_id: str, data: TimeBlockCreate
    ) -> TimeBlock:
        professional = await self.get_professional(professional_id)
        block = TimeBlock(
            professional_id=professional.id,
            start_datetime=to_local_naive(data.start),
            end_datetime=to_local_naive(data.end),
            reason=data.reason,
        )
        self.db.add(block)

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to create time block", exc_info=e)
            raise DataStoreError("Failed to create time block") from e

        logger.info(
            "Time block created",
            professional_id=professional_id,
            block_id=str(block.uuid),
            start=block.start_datetime.isoformat(),
            end=block.end_datetime.isoformat(),
        )
        return block

    async def delete_time_block(self, professional_id: str, block_id: str) -> None:
        professional = await self.get_professional(professional_id)
        key = parse_public_id(block_id)

        block = None
        if key is not None:
            result = await self.db.execute(
                select(TimeBlock).where(
                    and_(
                        TimeBlock.uuid == key,
                        TimeBlock.professional_id == professional.id,
                    )
                )
            )
            block = result.scalar_one_or_none()

        if block is None:
            raise NotFoundError("Time block not found", block_id=block_id)

        try:
            await self.db.delete(block)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to delete time block", block_id=block_id, exc_info=e)
            raise DataStoreError("Failed to delete time block") from e

        logger.info("Time block deleted", professional_id=professional_id, block_id=block_id)

    @staticmethod
    def _build_working_hours(schedule: WeeklySchedule) -> List[WorkingHours]:
        rows = []
        for weekday, day_schedule in schedule.items():
            row = WorkingHours(
                weekday=weekday.value,
                start_time=day_schedule.work_hours.start,
                end_time=day_schedule.work_hours.end,
                is_active=day_schedule.is_active,
            )
            row.breaks = [
                ScheduleBreak(start_time=period.start, end_time=period.end, position=i)
                for i, period in enumerate(day_schedule.breaks)
            ]
            rows.append(row)
        return rows
