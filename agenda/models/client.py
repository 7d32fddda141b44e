import uuid

from sqlalchemy import Column, DateTime, Integer, String, Uuid
from sqlalchemy.sql import func

from agenda.core.database import Base


class Client(Base):
    """Person booking appointments; identified by email."""

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        Uuid(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(30), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<Client(id={self.id}, email='{self.email}')>"
