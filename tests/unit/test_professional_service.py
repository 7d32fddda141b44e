"""Test professional management against a real database."""

from datetime import datetime, time, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.core.exceptions import InvalidInputError, NotFoundError
from agenda.models.professional import Professional
from agenda.models.time_block import TimeBlock
from agenda.models.working_hours import Weekday
from agenda.schemas.professional import ProfessionalCreate, ServiceCreate, TimeBlockCreate
from agenda.schemas.scheduling import AvailabilityRequest, DaySchedule
from agenda.services.professional import ProfessionalService
from agenda.services.scheduling import SchedulingService
from tests.fixtures.agenda_fixtures import BEFORE_TARGET, TARGET_MONDAY, at


class TestSearchProfessionals:
    @pytest.fixture
    async def professionals(self, db: AsyncSession, sample_professional):
        db.add_all(
            [
                Professional(display_name="Bruno Costa", email="bruno@clinic.com"),
                Professional(
                    display_name="Carla Mendes", email="carla@clinic.com", is_active=False
                ),
            ]
        )
        await db.commit()

    async def test_matches_name_case_insensitively(self, db, professionals):
        results = await ProfessionalService(db).search_professionals("ana sou")

        assert [p.display_name for p in results] == ["Ana Souza"]

    async def test_matches_email(self, db, professionals):
        results = await ProfessionalService(db).search_professionals("CLINIC.com")

        assert [p.display_name for p in results] == ["Bruno Costa"]

    async def test_empty_query_lists_active_professionals_by_name(
        self, db, professionals
    ):
        results = await ProfessionalService(db).search_professionals("  ")

        assert [p.display_name for p in results] == ["Ana Souza", "Bruno Costa"]


class TestProfile:
    async def test_profile_includes_schedule_and_services(
        self, db, sample_professional, sample_service
    ):
        profile = await ProfessionalService(db).get_profile(str(sample_professional.uuid))

        assert profile.display_name == "Ana Souza"
        assert profile.work_schedule[Weekday.MONDAY].work_hours.start == time(9, 0)
        assert profile.work_schedule[Weekday.MONDAY].breaks[0].end == time(10, 30)
        assert profile.work_schedule[Weekday.TUESDAY].is_active is False
        assert [s.name for s in profile.services] == ["Initial assessment"]
        assert profile.services[0].price == Decimal("80.00")

    async def test_unknown_professional_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            await ProfessionalService(db).get_profile("not-a-uuid")


class TestCreateProfessional:
    async def test_creates_professional_with_schedule(self, db):
        data = ProfessionalCreate.model_validate(
            {
                "displayName": "Dora Reis",
                "email": "Dora@Example.com",
                "workSchedule": {
                    "wednesday": {
                        "workHours": {"start": "13:00", "end": "18:00"},
                        "breaks": [{"start": "15:00", "end": "15:15"}],
                    }
                },
            }
        )

        professional = await ProfessionalService(db).create_professional(data)

        assert professional.email == "dora@example.com"
        assert len(professional.working_hours) == 1
        assert professional.working_hours[0].weekday == "wednesday"
        assert professional.working_hours[0].breaks[0].start_time == time(15, 0)

    async def test_duplicate_email_is_rejected(self, db, sample_professional):
        data = ProfessionalCreate(display_name="Ana Again", email="ANA@example.com")

        with pytest.raises(InvalidInputError):
            await ProfessionalService(db).create_professional(data)


class TestScheduleManagement:
    async def test_replace_schedule_changes_availability(
        self, db, sample_professional, sample_service
    ):
        professional_id = str(sample_professional.uuid)
        service_id = str(sample_service.uuid)
        schedule = {
            Weekday.MONDAY: DaySchedule(work_hours={"start": "14:00", "end": "15:00"})
        }

        professional = await ProfessionalService(db).replace_schedule(
            professional_id, schedule
        )

        assert [wh.weekday for wh in professional.working_hours] == ["monday"]
        slots = await SchedulingService(db).get_available_slots(
            AvailabilityRequest(
                date=datetime(2030, 1, 7),
                professional_id=professional_id,
                service_id=service_id,
            ),
            now=BEFORE_TARGET,
        )
        assert slots == [at(14, 0), at(14, 15), at(14, 30)]

    @pytest.mark.filterwarnings(
        "error:Identity map already had an identity:sqlalchemy.exc.SAWarning"
    )
    async def test_replace_schedule_twice_leaves_no_stale_rows(
        self, db, sample_professional
    ):
        professional_id = str(sample_professional.uuid)
        service = ProfessionalService(db)

        await service.replace_schedule(
            professional_id,
            {
                Weekday.MONDAY: DaySchedule(
                    work_hours={"start": "08:00", "end": "12:00"},
                    breaks=[{"start": "10:00", "end": "10:15"}],
                ),
                Weekday.FRIDAY: DaySchedule(work_hours={"start": "13:00", "end": "17:00"}),
            },
        )
        professional = await service.replace_schedule(
            professional_id,
            {Weekday.MONDAY: DaySchedule(work_hours={"start": "09:00", "end": "11:00"})},
        )

        assert [wh.weekday for wh in professional.working_hours] == ["monday"]
        assert professional.working_hours[0].start_time == time(9, 0)
        assert professional.working_hours[0].breaks == []

    async def test_add_service(self, db, sample_professional):
        service = await ProfessionalService(db).add_service(
            str(sample_professional.uuid),
            ServiceCreate(name="Follow-up", duration_minutes=20, price=Decimal("50")),
        )

        assert service.uuid is not None
        assert service.professional_id == sample_professional.id
        assert service.duration_minutes == 20

    async def test_time_block_is_stored_in_local_time(self, db, sample_professional):
        block = await ProfessionalService(db).add_time_block(
            str(sample_professional.uuid),
            TimeBlockCreate(
                start=datetime(2030, 1, 7, 9, 0, tzinfo=timezone.utc),
                end=datetime(2030, 1, 7, 10, 0, tzinfo=timezone.utc),
                reason="Conference",
            ),
        )

        assert block.start_datetime == at(9, 0)
        assert block.start_datetime.tzinfo is None
        assert block.end_datetime == at(10, 0)

    async def test_delete_time_block(self, db, sample_professional):
        service = ProfessionalService(db)
        professional_id = str(sample_professional.uuid)
        block = await service.add_time_block(
            professional_id,
            TimeBlockCreate(start=at(9, 0), end=at(10, 0)),
        )

        await service.delete_time_block(professional_id, str(block.uuid))

        remaining = (await db.execute(select(TimeBlock))).scalars().all()
        assert remaining == []

    async def test_delete_unknown_time_block_is_not_found(
        self, db, sample_professional
    ):
        with pytest.raises(NotFoundError):
            await ProfessionalService(db).delete_time_block(
                str(sample_professional.uuid), "00000000-0000-0000-0000-000000000000"
            )
