from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.api.deps.database import get_db
from agenda.schemas.booking import ClientLookupResponse
from agenda.services.client import ClientService

router = APIRouter()


@router.get("/lookup", response_model=ClientLookupResponse)
async def lookup_client(
    email: Optional[str] = Query(None, description="Client email address"),
    db: AsyncSession = Depends(get_db),
):
    """Name and phone previously used with this email, for prefilling forms."""
    return await ClientService(db).lookup_by_email(email)
