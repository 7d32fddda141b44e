import enum
from datetime import date

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from agenda.core.database import Base


class Weekday(str, enum.Enum):
    """Fixed weekday keys of a weekly schedule, indexed 0=Sunday..6=Saturday."""

    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"

    @property
    def day_index(self) -> int:
        return list(Weekday).index(self)

    @classmethod
    def from_index(cls, index: int) -> "Weekday":
        return list(cls)[index]

    @classmethod
    def for_date(cls, day: date) -> "Weekday":
        # isoweekday(): Monday=1..Sunday=7, so Sunday maps to 0
        return cls.from_index(day.isoweekday() % 7)


class WorkingHours(Base):
    """Working hours of a professional for one weekday, with breaks."""

    __tablename__ = "working_hours"

    id = Column(Integer, primary_key=True, index=True)
    professional_id = Column(
        Integer, ForeignKey("professionals.id", ondelete="CASCADE"), nullable=False
    )

    # Schedule details
    weekday = Column(String(20), nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # Status
    is_active = Column(Boolean, default=True, nullable=False)

    professional = relationship("Professional", back_populates="working_hours")
    breaks = relationship(
        "ScheduleBreak",
        back_populates="working_hours",
        cascade="all, delete-orphan",
        order_by="ScheduleBreak.position",
    )

    __table_args__ = (
        UniqueConstraint(
            "professional_id", "weekday", name="uq_working_hours_professional_weekday"
        ),
        Index("ix_working_hours_professional", "professional_id"),
    )

    def __repr__(self):
        return (
            f"<WorkingHours(id={self.id}, professional_id={self.professional_id}, "
            f"{self.weekday}: {self.start_time}-{self.end_time}, "
            f"active={self.is_active}, breaks={len(self.breaks)})>"
        )


class ScheduleBreak(Base):
    """Recurring daily break inside a weekday's working hours."""

    __tablename__ = "schedule_breaks"

    id = Column(Integer, primary_key=True, index=True)
    working_hours_id = Column(
        Integer, ForeignKey("working_hours.id", ondelete="CASCADE"), nullable=False
    )
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    position = Column(Integer, default=0, nullable=False)

    working_hours = relationship("WorkingHours", back_populates="breaks")

    def __repr__(self):
        return f"<ScheduleBreak({self.start_time}-{self.end_time})>"
