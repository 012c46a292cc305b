from typing import Optional

from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from estimate_export.database.models import Lead
from estimate_export.repositories.base_repository import BaseRepository


class LeadRepository(BaseRepository[Lead]):
    """Repository for Lead records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Lead)

    async def get_for_org(self, id: str, org_id: str, *options) -> Optional[Lead]:
        """Get a lead owned by ``org_id`` with its contact and claim loaded.

        The export metadata is derived from those relationships.
        """
        return await super().get_for_org(
            id,
            org_id,
            selectinload(Lead.contact),
            selectinload(Lead.claim),
            *options,
        )
