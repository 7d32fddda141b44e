from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, EmailStr, Field, field_validator

from agenda.models.appointment import Appointment, AppointmentStatus
from agenda.schemas.scheduling import CamelModel, parse_iso_datetime
from agenda.utils.timezone import localize


class BookingCreate(CamelModel):
    """Booking request as submitted by the client-facing form."""

    professional_id: str = Field(..., min_length=1)
    service_id: str = Field(..., min_length=1)
    slot_start: datetime = Field(
        ...,
        validation_alias=AliasChoices("slotStart", "slot_start", "selectedSlot"),
    )
    client_name: str = Field(..., min_length=3, max_length=200)
    client_email: EmailStr
    client_phone: Optional[str] = Field(None, max_length=30, pattern=r"^[0-9]+$")
    notes: Optional[str] = None

    @field_validator("slot_start", mode="before")
    @classmethod
    def validate_slot_start(cls, v):
        return parse_iso_datetime(v)

    @field_validator("client_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Client name must have at least 3 characters")
        return v

    @field_validator("client_phone", mode="before")
    @classmethod
    def blank_phone_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class BookingRead(CamelModel):
    id: str
    professional_id: str
    service_id: str
    client_name: str
    client_email: str
    start: datetime
    end: datetime
    duration_minutes: int
    status: AppointmentStatus
    notes: Optional[str] = None

    @classmethod
    def from_model(cls, appointment: Appointment) -> "BookingRead":
        return cls(
            id=str(appointment.uuid),
            professional_id=str(appointment.professional.uuid),
            service_id=str(appointment.service.uuid),
            client_name=appointment.client.name,
            client_email=appointment.client.email,
            start=localize(appointment.start_datetime),
            end=localize(appointment.end_datetime),
            duration_minutes=appointment.duration_minutes,
            status=AppointmentStatus(appointment.status),
            notes=appointment.notes,
        )


class ClientLookupResponse(CamelModel):
    """Known contact details for an email; empty strings when unknown."""

    name: str = ""
    phone: str = ""
