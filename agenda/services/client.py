from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.core.exceptions import DataStoreError
from agenda.models.client import Client
from agenda.schemas.booking import ClientLookupResponse

logger = structlog.get_logger(__name__)


class ClientService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def lookup_by_email(self, email: Optional[str]) -> ClientLookupResponse:
        """Prefill data for the booking form.

        Unknown or empty emails yield blank name and phone rather than an error,
        so the form can be filled in either way.
        """
        normalized = (email or "").strip().lower()
        if not normalized:
            return ClientLookupResponse()

        try:
            result = await self.db.execute(
                select(Client).where(Client.email == normalized)
            )
            client = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Failed to look up client", email=normalized, exc_info=e)
            raise DataStoreError("Failed to look up client") from e

        if client is None:
            logger.debug("No client registered for email", email=normalized)
            return ClientLookupResponse()

        return ClientLookupResponse(name=client.name or "", phone=client.phone or "")
