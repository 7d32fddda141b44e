# Import all models to ensure they are registered with SQLAlchemy
from . import (
    appointment,
    client,
    professional,
    service,
    time_block,
    working_hours,
)

__all__ = [
    "appointment",
    "client",
    "professional",
    "service",
    "time_block",
    "working_hours",
]
