from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.api.deps.database import get_db
from agenda.schemas.professional import (
    ProfessionalCreate,
    ProfessionalProfile,
    ProfessionalSummary,
    ServiceCreate,
    ServiceRead,
    TimeBlockCreate,
    TimeBlockRead,
)
from agenda.schemas.scheduling import WeeklyScheduleUpdate
from agenda.services.professional import ProfessionalService

router = APIRouter()


@router.get("", response_model=List[ProfessionalSummary])
async def search_professionals(
    q: Optional[str] = Query(None, description="Search by name or email"),
    db: AsyncSession = Depends(get_db),
):
    professionals = await ProfessionalService(db).search_professionals(q)
    return [ProfessionalSummary.from_model(p) for p in professionals]


@router.post(
    "", response_model=ProfessionalProfile, status_code=status.HTTP_201_CREATED
)
async def create_professional(
    data: ProfessionalCreate, db: AsyncSession = Depends(get_db)
):
    """Register a professional together with their weekly schedule."""
    service = ProfessionalService(db)
    professional = await service.create_professional(data)
    return await service.get_profile(str(professional.uuid))


@router.get("/{professional_id}", response_model=ProfessionalProfile)
async def get_professional(professional_id: str, db: AsyncSession = Depends(get_db)):
    return await ProfessionalService(db).get_profile(professional_id)


@router.put("/{professional_id}/schedule", response_model=ProfessionalProfile)
async def replace_schedule(
    professional_id: str,
    data: WeeklyScheduleUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Replace the weekly schedule. Weekdays left out become days off."""
    service = ProfessionalService(db)
    await service.replace_schedule(professional_id, data.schedule)
    return await service.get_profile(professional_id)


@router.post(
    "/{professional_id}/services",
    response_model=ServiceRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_service(
    professional_id: str, data: ServiceCreate, db: AsyncSession = Depends(get_db)
):
    service = await ProfessionalService(db).add_service(professional_id, data)
    return ServiceRead.from_model(service)


@router.post(
    "/{professional_id}/time-blocks",
    response_model=TimeBlockRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_time_block(
    professional_id: str, data: TimeBlockCreate, db: AsyncSession = Depends(get_db)
):
    """Block out a period (vacation, meeting) so no slots are offered in it."""
    block = await ProfessionalService(db).add_time_block(professional_id, data)
    return TimeBlockRead.from_model(block)


@router.delete(
    "/{professional_id}/time-blocks/{block_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_time_block(
    professional_id: str, block_id: str, db: AsyncSession = Depends(get_db)
):
    await ProfessionalService(db).delete_time_block(professional_id, block_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
