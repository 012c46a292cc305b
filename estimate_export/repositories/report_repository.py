from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from estimate_export.database.models import Report
from estimate_export.repositories.base_repository import BaseRepository


class ReportRepository(BaseRepository[Report]):
    """Repository for previously generated report artifacts."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Report)

    async def list_for_claim(self, claim_id: str, org_id: str) -> List[Report]:
        """List a claim's reports in creation order."""
        return await self.list_where(
            Report.claim_id == claim_id,
            Report.org_id == org_id,
            order_by=Report.created_at.asc(),
        )
