from datetime import date, datetime, time
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.models.appointment import Appointment, AppointmentStatus
from agenda.models.client import Client
from agenda.models.professional import Professional
from agenda.models.service import Service
from agenda.models.working_hours import ScheduleBreak, Weekday, WorkingHours

# A Monday far enough ahead that every slot on it is in the future
TARGET_MONDAY = date(2030, 1, 7)
TARGET_TUESDAY = date(2030, 1, 8)
BEFORE_TARGET = datetime(2030, 1, 6, 12, 0)


def at(hour: int, minute: int = 0, day: date = TARGET_MONDAY) -> datetime:
    return datetime.combine(day, time(hour, minute))


@pytest.fixture
async def sample_professional(db: AsyncSession) -> Professional:
    """Works Monday 09:00-12:00 with a 10:00-10:30 break, Tuesday off."""
    professional = Professional(
        display_name="Ana Souza",
        email="ana@example.com",
        title="Physiotherapist",
    )
    monday = WorkingHours(
        weekday=Weekday.MONDAY.value,
        start_time=time(9, 0),
        end_time=time(12, 0),
        is_active=True,
    )
    monday.breaks = [
        ScheduleBreak(start_time=time(10, 0), end_time=time(10, 30), position=0)
    ]
    tuesday = WorkingHours(
        weekday=Weekday.TUESDAY.value,
        start_time=time(9, 0),
        end_time=time(17, 0),
        is_active=False,
    )
    professional.working_hours = [monday, tuesday]
    db.add(professional)
    await db.commit()
    await db.refresh(professional)
    return professional


@pytest.fixture
async def sample_service(db: AsyncSession, sample_professional: Professional) -> Service:
    """A 30-minute session offered by the sample professional."""
    service = Service(
        professional_id=sample_professional.id,
        name="Initial assessment",
        duration_minutes=30,
        price=Decimal("80.00"),
    )
    db.add(service)
    await db.commit()
    await db.refresh(service)
    return service


@pytest.fixture
async def sample_client(db: AsyncSession) -> Client:
    client = Client(name="Bruno Lima", email="bruno@example.com", phone="11999990000")
    db.add(client)
    await db.commit()
    await db.refresh(client)
    return client


@pytest.fixture
async def sample_appointment(
    db: AsyncSession,
    sample_professional: Professional,
    sample_service: Service,
    sample_client: Client,
) -> Appointment:
    """Confirmed appointment on the target Monday, 11:00-11:30."""
    appointment = Appointment(
        professional_id=sample_professional.id,
        service_id=sample_service.id,
        client_id=sample_client.id,
        start_datetime=at(11, 0),
        end_datetime=at(11, 30),
        duration_minutes=30,
        status=AppointmentStatus.CONFIRMED.value,
    )
    db.add(appointment)
    await db.commit()
    await db.refresh(appointment)
    return appointment


@pytest.fixture
def booking_payload(sample_professional: Professional, sample_service: Service) -> dict:
    """Wire-format booking request for 09:00 on the target Monday."""
    return {
        "professionalId": str(sample_professional.uuid),
        "serviceId": str(sample_service.uuid),
        "slotStart": at(9, 0).isoformat(),
        "clientName": "Carla Dias",
        "clientEmail": "Carla@Example.com",
        "clientPhone": "11988887777",
        "notes": "First visit",
    }
