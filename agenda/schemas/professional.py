from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from agenda.models.professional import Professional
from agenda.models.service import Service
from agenda.models.time_block import TimeBlock
from agenda.schemas.scheduling import CamelModel, WeeklySchedule, parse_iso_datetime
from agenda.utils.timezone import localize, to_local_naive


class ProfessionalBase(CamelModel):
    display_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    title: Optional[str] = Field(None, max_length=200)
    photo_url: Optional[str] = Field(None, max_length=500)


class ProfessionalCreate(ProfessionalBase):
    work_schedule: WeeklySchedule = Field(default_factory=dict)


class ProfessionalSummary(ProfessionalBase):
    id: str

    @classmethod
    def from_model(cls, professional: Professional) -> "ProfessionalSummary":
        return cls(
            id=str(professional.uuid),
            display_name=professional.display_name,
            email=professional.email,
            title=professional.title,
            photo_url=professional.photo_url,
        )


class ServiceCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    duration_minutes: int = Field(..., gt=0, description="Service duration in minutes")
    price: Decimal = Field(Decimal("0"), ge=0)


class ServiceRead(ServiceCreate):
    id: str

    @classmethod
    def from_model(cls, service: Service) -> "ServiceRead":
        return cls(
            id=str(service.uuid),
            name=service.name,
            description=service.description,
            duration_minutes=service.duration_minutes,
            price=service.price,
        )


class ProfessionalProfile(ProfessionalSummary):
    work_schedule: WeeklySchedule = Field(default_factory=dict)
    services: List[ServiceRead] = Field(default_factory=list)


class TimeBlockCreate(CamelModel):
    start: datetime
    end: datetime
    reason: Optional[str] = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def validate_datetime(cls, v):
        return parse_iso_datetime(v)

    @model_validator(mode="after")
    def validate_period(self):
        # Mixed naive and offset-aware bounds compare in local wall-clock time
        if to_local_naive(self.end) <= to_local_naive(self.start):
            raise ValueError("Time block end must be after its start")
        return self


class TimeBlockRead(TimeBlockCreate):
    id: str

    @classmethod
    def from_model(cls, block: TimeBlock) -> "TimeBlockRead":
        return cls(
            id=str(block.uuid),
            start=localize(block.start_datetime),
            end=localize(block.end_datetime),
            reason=block.reason,
        )
