"""Payout repository for database operations."""
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, select

from database.models import Payout, PayoutStatus
from database.repositories.base import BaseRepository


class PayoutRepository(BaseRepository[Payout]):
    """Repository for Payout model operations."""

    model_class = Payout

    async def create(
        self,
        payout_number: str,
        agent_id: int,
        amount: Decimal,
        notes: Optional[str] = None,
    ) -> Payout:
        """Create new payout request."""
        payout = Payout(
            payout_number=payout_number,
            agent_id=agent_id,
            amount=amount,
            status=PayoutStatus.REQUESTED,
            notes=notes,
        )
        self.session.add(payout)
        await self.session.flush()
        return payout

    async def get_by_number(self, payout_number: str) -> Optional[Payout]:
        """Get payout by its human-readable number."""
        result = await self.session.execute(
            select(Payout).where(Payout.payout_number == payout_number)
        )
        return result.scalar_one_or_none()

    async def sum_outstanding(self, agent_id: int) -> Decimal:
        """Total amount of an agent's payouts still waiting for a decision."""
        result = await self.session.execute(
            select(func.sum(Payout.amount)).where(
                and_(
                    Payout.agent_id == agent_id,
                    Payout.status == PayoutStatus.REQUESTED,
                )
            )
        )
        return Decimal(result.scalar() or 0)

    async def list_paginated(
        self,
        agent_id: Optional[int] = None,
        status: Optional[PayoutStatus] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Payout], int]:
        """Get one page of payouts, newest first."""
        query = select(Payout)
        if agent_id is not None:
            query = query.where(Payout.agent_id == agent_id)
        if status:
            query = query.where(Payout.status == status)
        query = query.order_by(Payout.created_at.desc(), Payout.id.desc())
        return await self.paginate(query, limit, offset)
