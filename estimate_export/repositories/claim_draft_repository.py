from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from estimate_export.database.models import ClaimDraft
from estimate_export.repositories.base_repository import BaseRepository


class ClaimDraftRepository(BaseRepository[ClaimDraft]):
    """Repository for AI-generated claim drafts."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ClaimDraft)

    async def get_latest_for_lead(self, lead_id: str, org_id: str) -> Optional[ClaimDraft]:
        """Get the most recent draft with a scope for a lead within an org.

        Args:
            lead_id: Lead the draft was generated for
            org_id: Caller's organization

        Returns:
            The newest scope-bearing ClaimDraft, or None if there is none
        """
        query = (
            select(ClaimDraft)
            .where(
                ClaimDraft.lead_id == lead_id,
                ClaimDraft.org_id == org_id,
                ClaimDraft.scope.is_not(None),
            )
            .order_by(ClaimDraft.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalars().first()
