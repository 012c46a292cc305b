"""Repository for user lookups.

Users are created by the CRM on sign-up; this service only resolves the
organization a Supabase identity works in.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from estimate_export.database.models import User
from estimate_export.repositories.base_repository import BaseRepository
from estimate_export.utils.logging import get_logger

LOGGER = get_logger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User entity operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def get_org_id_for_user(self, supabase_user_id: str) -> Optional[str]:
        """Resolve the organization ID for a Supabase user.

        Returns None both when the user row is missing and when the user has
        no organization yet.
        """
        stmt = select(User.org_id).where(User.supabase_user_id == supabase_user_id)
        result = await self.session.execute(stmt)
        org_id = result.scalar_one_or_none()
        if org_id is None:
            LOGGER.warning(
                "No organization for user",
                extra={"supabase_user_id": supabase_user_id},
            )
        return org_id
