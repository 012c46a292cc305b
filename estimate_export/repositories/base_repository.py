from typing import Generic, TypeVar, Type, Optional, List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from estimate_export.utils.logging import get_logger

# Define a generic type for SQLAlchemy models
ModelType = TypeVar("ModelType")

LOGGER = get_logger(__name__)


class BaseRepository(Generic[ModelType]):
    """Base repository implementing the shared read and insert operations.

    Tenant-owned models are looked up through :meth:`get_for_org` so the
    organization filter is applied in one place.
    """

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session
            model: The SQLAlchemy model class this repository manages
        """
        self.session = session
        self.model = model
        self.logger = LOGGER

    async def get_for_org(self, id: str, org_id: str, *options) -> Optional[ModelType]:
        """Get a record by ID only if it belongs to the given organization.

        This is the only lookup by primary key; there is no unscoped variant.
        A record owned by another organization is reported exactly like a
        missing one.

        Args:
            id: The primary key of the record
            org_id: The owning organization
            *options: Loader options such as ``selectinload(...)``

        Returns:
            The record if found in the organization, None otherwise
        """
        try:
            query = select(self.model).where(
                self.model.id == id,
                self.model.org_id == org_id,
            )
            if options:
                query = query.options(*options)
            result = await self.session.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error retrieving {self.model.__name__} {id} for org {org_id}: {str(e)}",
                exc_info=True
            )
            raise

    async def create(self, **kwargs) -> ModelType:
        """Insert a new record and commit it.

        Args:
            **kwargs: Fields and values for the new record

        Returns:
            The created record
        """
        try:
            instance = self.model(**kwargs)
            self.session.add(instance)
            await self.session.flush()
            await self.session.commit()
            return instance
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error creating {self.model.__name__}: {str(e)}",
                exc_info=True
            )
            raise

    async def list_where(self, *conditions, order_by=None, limit: int = 200) -> List[ModelType]:
        """List records matching SQLAlchemy conditions."""
        try:
            query = select(self.model).where(*conditions)
            if order_by is not None:
                query = query.order_by(order_by)
            query = query.limit(limit)
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error listing {self.model.__name__}: {str(e)}",
                exc_info=True
            )
            raise
