"""
Base repository with common persistence operations.

Provides a generic base class for the commission, rule and payout
repositories.
"""
from typing import TypeVar, Generic, Optional, List, Tuple, Type
from abc import ABC

from sqlalchemy import Select, select, func
from sqlalchemy.ext.asyncio import AsyncSession

from database.base import Base

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(ABC, Generic[ModelType]):
    """
    Abstract base repository.

    Provides:
    - get_by_id: Get single entity by ID
    - add: Attach a new entity to the session
    - flush: Flush pending changes
    - refresh: Reload entity state from the database
    - paginate: Run a query with limit/offset and a total count

    Repositories never commit; the owning service decides transaction
    boundaries.

    Usage:
        class PayoutRepository(BaseRepository[Payout]):
            model_class = Payout

            async def get_by_number(self, payout_number: str):
                # Custom method
                ...
    """

    model_class: Type[ModelType]

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def get_by_id(self, entity_id: int, for_update: bool = False) -> Optional[ModelType]:
        """
        Get entity by its primary key ID.

        Args:
            entity_id: Primary key ID
            for_update: Lock the row until the transaction ends

        Returns:
            Entity or None if not found
        """
        query = select(self.model_class).where(self.model_class.id == entity_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    def add(self, entity: ModelType) -> None:
        """Add entity to session (for create operations)."""
        self.session.add(entity)

    async def flush(self) -> None:
        """Flush session changes to database."""
        await self.session.flush()

    async def refresh(self, entity: ModelType) -> ModelType:
        """Refresh entity from database."""
        await self.session.refresh(entity)
        return entity

    async def paginate(
        self,
        query: Select,
        limit: int,
        offset: int,
    ) -> Tuple[List[ModelType], int]:
        """
        Execute query for one page of results.

        Args:
            query: Filtered and ordered select of model_class
            limit: Page size
            offset: Rows to skip

        Returns:
            (rows, total matching rows)
        """
        total_result = await self.session.execute(
            select(func.count()).select_from(query.order_by(None).subquery())
        )
        total = total_result.scalar() or 0

        result = await self.session.execute(query.limit(limit).offset(offset))
        return list(result.scalars().all()), total
