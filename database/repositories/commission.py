"""Commission repository for database operations."""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, func, select, update

from database.models import Commission, CommissionStatus, CommissionType
from database.repositories.base import BaseRepository


class CommissionRepository(BaseRepository[Commission]):
    """Repository for Commission model operations."""

    model_class = Commission

    async def create(
        self,
        application_id: int,
        agent_id: int,
        base_amount: Decimal,
        amount: Decimal,
        kind: Optional[CommissionType],
        value: Decimal,
        rule_id: Optional[int],
        priority_used: Optional[int],
    ) -> Commission:
        """Create new pending commission record."""
        commission = Commission(
            application_id=application_id,
            agent_id=agent_id,
            rule_id=rule_id,
            base_amount=base_amount,
            amount=amount,
            kind=kind,
            value=value,
            priority_used=priority_used,
            status=CommissionStatus.PENDING,
        )
        self.session.add(commission)
        await self.session.flush()
        return commission

    async def get_by_application(self, application_id: int) -> Optional[Commission]:
        """Get commission recorded for an application."""
        result = await self.session.execute(
            select(Commission).where(Commission.application_id == application_id)
        )
        return result.scalar_one_or_none()

    async def get_all_by_agent(
        self,
        agent_id: int,
        status: Optional[CommissionStatus] = None
    ) -> List[Commission]:
        """Get all commissions of an agent, optionally filtered by status."""
        query = select(Commission).where(Commission.agent_id == agent_id)

        if status:
            query = query.where(Commission.status == status)

        query = query.order_by(Commission.created_at.desc(), Commission.id.desc())

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_paginated(
        self,
        agent_id: Optional[int] = None,
        status: Optional[CommissionStatus] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Commission], int]:
        """Get one page of commissions, newest first."""
        query = select(Commission)
        if agent_id is not None:
            query = query.where(Commission.agent_id == agent_id)
        if status:
            query = query.where(Commission.status == status)
        query = query.order_by(Commission.created_at.desc(), Commission.id.desc())
        return await self.paginate(query, limit, offset)

    async def sum_by_status(self, agent_id: int) -> Dict[CommissionStatus, Decimal]:
        """Sum commission amounts of an agent per status."""
        result = await self.session.execute(
            select(
                Commission.status,
                func.sum(Commission.amount).label('total')
            ).where(
                Commission.agent_id == agent_id
            ).group_by(Commission.status)
        )

        sums = {status: Decimal("0") for status in CommissionStatus}
        for status, total in result:
            sums[CommissionStatus(status)] = Decimal(total or 0)
        return sums

    async def lock_approved(
        self,
        agent_id: int,
        approved_before: Optional[datetime] = None,
    ) -> List[Commission]:
        """Select an agent's approved commissions FOR UPDATE."""
        query = select(Commission).where(
            and_(
                Commission.agent_id == agent_id,
                Commission.status == CommissionStatus.APPROVED,
            )
        )
        if approved_before is not None:
            query = query.where(Commission.approved_at <= approved_before)

        result = await self.session.execute(
            query.order_by(Commission.id.asc()).with_for_update()
        )
        return list(result.scalars().all())

    async def mark_paid_for_agent(
        self,
        agent_id: int,
        approved_before: Optional[datetime] = None,
    ) -> int:
        """
        Move every approved commission of an agent to paid.

        Args:
            agent_id: Agent whose approved balance is settled
            approved_before: Only settle commissions approved at or before this time

        Returns:
            Number of commissions settled
        """
        conditions = [
            Commission.agent_id == agent_id,
            Commission.status == CommissionStatus.APPROVED,
        ]
        if approved_before is not None:
            conditions.append(Commission.approved_at <= approved_before)

        result = await self.session.execute(
            update(Commission)
            .where(and_(*conditions))
            .values(status=CommissionStatus.PAID)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    async def count_by_rule(self, rule_id: int) -> int:
        """Count commissions priced with a rule."""
        result = await self.session.execute(
            select(func.count(Commission.id)).where(Commission.rule_id == rule_id)
        )
        return result.scalar() or 0
