import uuid

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from agenda.core.database import Base


class Professional(Base):
    """Professional offering bookable services on a weekly schedule."""

    __tablename__ = "professionals"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        Uuid(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )
    display_name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False)

    # Profile information
    title = Column(String(200), nullable=True)
    photo_url = Column(String(500), nullable=True)

    # Booking settings
    is_active = Column(Boolean, default=True, nullable=False)

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    working_hours = relationship(
        "WorkingHours",
        back_populates="professional",
        cascade="all, delete-orphan",
        order_by="WorkingHours.id",
    )
    services = relationship(
        "Service", back_populates="professional", cascade="all, delete-orphan"
    )
    time_blocks = relationship(
        "TimeBlock", back_populates="professional", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return (
            f"<Professional(id={self.id}, name='{self.display_name}', "
            f"active={self.is_active})>"
        )
