from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from estimate_export.database.models import EstimateExport
from estimate_export.repositories.base_repository import BaseRepository
from estimate_export.utils.logging import get_logger

LOGGER = get_logger(__name__)


class EstimateExportRepository(BaseRepository[EstimateExport]):
    """Repository for export records.

    Export rows are insert-only; this repository has no update or delete
    method.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, EstimateExport)

    async def create_export(
        self,
        org_id: str,
        lead_id: str,
        xml: str,
        symbility: Dict[str, Any],
        summary: Dict[str, Any],
        claim_id: Optional[str] = None,
    ) -> EstimateExport:
        """Persist one export run.

        Args:
            org_id: Owning organization
            lead_id: Lead the estimate was exported for
            xml: Xactimate-style XML document
            symbility: Symbility-style JSON document
            summary: Summary totals
            claim_id: Linked claim, if the lead has one

        Returns:
            Created EstimateExport record
        """
        export = await self.create(
            org_id=org_id,
            lead_id=lead_id,
            claim_id=claim_id,
            xml=xml,
            symbility=symbility,
            summary=summary,
        )
        LOGGER.info(
            "Estimate export persisted",
            extra={"export_id": export.id, "lead_id": lead_id, "org_id": org_id},
        )
        return export

    async def list_for_lead(self, lead_id: str, org_id: str, limit: int = 50) -> List[EstimateExport]:
        """List a lead's exports, newest first."""
        return await self.list_where(
            EstimateExport.lead_id == lead_id,
            EstimateExport.org_id == org_id,
            order_by=EstimateExport.created_at.desc(),
            limit=limit,
        )
