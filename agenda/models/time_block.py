import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from agenda.core.database import Base


class TimeBlock(Base):
    """Ad-hoc period during which a professional takes no bookings."""

    __tablename__ = "time_blocks"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        Uuid(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )
    professional_id = Column(
        Integer, ForeignKey("professionals.id", ondelete="CASCADE"), nullable=False
    )

    # Local wall-clock period
    start_datetime = Column(DateTime, nullable=False)
    end_datetime = Column(DateTime, nullable=False)
    reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    professional = relationship("Professional", back_populates="time_blocks")

    __table_args__ = (
        CheckConstraint(
            "end_datetime > start_datetime", name="check_block_end_after_start"
        ),
        Index("ix_time_blocks_professional_dates", "professional_id", "start_datetime"),
    )

    def __repr__(self):
        return (
            f"<TimeBlock(id={self.id}, professional_id={self.professional_id}, "
            f"{self.start_datetime} - {self.end_datetime})>"
        )
