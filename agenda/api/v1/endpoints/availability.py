from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.api.deps.database import get_db
from agenda.schemas.scheduling import AvailabilityRequest
from agenda.services.scheduling import SchedulingService
from agenda.utils.timezone import localize

router = APIRouter()


@router.post("", response_model=List[str])
async def get_available_slots(
    request: AvailabilityRequest, db: AsyncSession = Depends(get_db)
) -> List[str]:
    """
    Available start times for a service on a given day.

    Slots are probed every 15 minutes inside the professional's working hours
    and exclude breaks, existing appointments, time blocks and anything not
    strictly in the future. An empty list means nothing is bookable.

    Responds 404 when either id is unknown or inactive, and also when the
    service is not offered by that professional.
    """
    service = SchedulingService(db)
    slots = await service.get_available_slots(request)
    return [localize(slot).isoformat() for slot in slots]
