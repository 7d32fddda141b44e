import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from agenda.core.database import Base


class AppointmentStatus(enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Appointment(Base):
    """Booked appointment of a client with a professional for one service."""

    __tablename__ = "appointments"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        Uuid(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )

    # Appointment participants
    professional_id = Column(Integer, ForeignKey("professionals.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)

    # Scheduling details, local wall-clock
    start_datetime = Column(DateTime, nullable=False, index=True)
    end_datetime = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    # Status management
    status = Column(
        String(20), nullable=False, default=AppointmentStatus.CONFIRMED.value, index=True
    )
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    notes = Column(Text, nullable=True)

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Constraints
    __table_args__ = (
        CheckConstraint(
            "end_datetime > start_datetime", name="check_end_after_start"
        ),
        CheckConstraint("duration_minutes > 0", name="check_positive_duration"),
        # One live appointment per professional and start; cancelled rows free the slot
        Index(
            "uq_appointments_professional_start_active",
            "professional_id",
            "start_datetime",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )

    # Relationships
    professional = relationship("Professional")
    service = relationship("Service")
    client = relationship("Client")

    @property
    def is_cancelled(self) -> bool:
        return self.status == AppointmentStatus.CANCELLED.value

    def cancel(self, when: Optional[datetime] = None) -> bool:
        """Mark the appointment cancelled. False if it already was."""
        if self.is_cancelled:
            return False

        self.status = AppointmentStatus.CANCELLED.value
        self.cancelled_at = when or datetime.now(timezone.utc)
        return True

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, status='{self.status}', "
            f"start='{self.start_datetime}', professional_id={self.professional_id})>"
        )
