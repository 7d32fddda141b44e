from datetime import datetime, time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from agenda.models.working_hours import Weekday


def parse_time_of_day(value: Any) -> Any:
    """Accept ``"HH:MM"`` (24-hour) strings for wall-clock times."""
    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) != 2 or not all(p.isdigit() for p in parts):
            raise ValueError(f"Time must be formatted as HH:MM, got '{value}'")
        hour, minute = int(parts[0]), int(parts[1])
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            raise ValueError(f"Time out of range: '{value}'")
        return time(hour, minute)
    return value


def parse_iso_datetime(value: Any) -> Any:
    """Accept ISO-8601 dates and datetimes, including a trailing ``Z``."""
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValueError(f"Invalid ISO-8601 date: '{value}'")
    return value


class CamelModel(BaseModel):
    """Base schema exchanging camelCase field names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimePeriod(CamelModel):
    start: time
    end: time

    @field_validator("start", "end", mode="before")
    @classmethod
    def validate_time_of_day(cls, v):
        return parse_time_of_day(v)

    @field_serializer("start", "end")
    def serialize_time_of_day(self, v: time) -> str:
        return v.strftime("%H:%M")


class WorkHours(TimePeriod):
    """Daily working window."""


class BreakPeriod(TimePeriod):
    """Recurring daily exclusion window, re-anchored to the target date."""


class DaySchedule(CamelModel):
    is_active: bool = True
    work_hours: WorkHours
    breaks: List[BreakPeriod] = Field(default_factory=list)


WeeklySchedule = Dict[Weekday, DaySchedule]


class BusyInterval(BaseModel):
    """Half-open ``[start, end)`` period during which a professional is busy."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    source: str = "appointment"

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Touching endpoints do not overlap."""
        return start < self.end and end > self.start


class AvailabilityRequest(CamelModel):
    """Inbound availability query: ``{date, professionalId, serviceId}``."""

    date: Optional[datetime] = None
    professional_id: Optional[str] = None
    service_id: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return parse_iso_datetime(v)


class WeeklyScheduleUpdate(BaseModel):
    """Replacement weekly schedule keyed by weekday name."""

    schedule: WeeklySchedule = Field(default_factory=dict)
