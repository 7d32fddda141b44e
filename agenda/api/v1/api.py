from fastapi import APIRouter

from agenda.api.v1.endpoints import availability, bookings, clients, professionals

api_router = APIRouter()

# Slot search
api_router.include_router(
    availability.router, prefix="/availability", tags=["availability"]
)

# Booking lifecycle
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])

# Client prefill lookup
api_router.include_router(clients.router, prefix="/clients", tags=["clients"])

# Professional profiles, schedules, services and time blocks
api_router.include_router(
    professionals.router, prefix="/professionals", tags=["professionals"]
)
