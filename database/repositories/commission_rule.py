"""Commission rule repository - storage and scoped lookup of rules."""
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import and_, or_, select

from database.models import CommissionRule, CommissionType, CommissionPriority
from database.repositories.base import BaseRepository


class CommissionRuleRepository(BaseRepository[CommissionRule]):
    """Repository for CommissionRule model operations."""

    model_class = CommissionRule

    async def create(
        self,
        kind: CommissionType,
        value: Decimal,
        agent_id: Optional[int] = None,
        university_id: Optional[int] = None,
        course_id: Optional[int] = None,
        priority: Optional[int] = None,
        active: bool = True,
    ) -> CommissionRule:
        """Create new rule. Priority defaults to the tier implied by the scope."""
        if priority is None:
            priority = CommissionPriority.for_scope(agent_id, university_id, course_id)

        rule = CommissionRule(
            agent_id=agent_id,
            university_id=university_id,
            course_id=course_id,
            kind=kind,
            value=value,
            priority=int(priority),
            active=active,
        )
        self.session.add(rule)
        await self.session.flush()
        return rule

    async def find_candidates(
        self,
        agent_id: Optional[int],
        university_id: Optional[int],
        course_id: Optional[int],
    ) -> List[CommissionRule]:
        """
        Get active rules matching any of the four scope combinations.

        Rules come back in creation order; picking between tiers is the
        resolver's job. Scope parts passed as None are not matched.
        """
        scopes = []
        if agent_id is not None and course_id is not None:
            scopes.append(and_(
                CommissionRule.agent_id == agent_id,
                CommissionRule.course_id == course_id,
            ))
        if agent_id is not None and university_id is not None:
            scopes.append(and_(
                CommissionRule.agent_id == agent_id,
                CommissionRule.university_id == university_id,
                CommissionRule.course_id.is_(None),
            ))
        if course_id is not None:
            scopes.append(and_(
                CommissionRule.agent_id.is_(None),
                CommissionRule.course_id == course_id,
            ))
        if university_id is not None:
            scopes.append(and_(
                CommissionRule.agent_id.is_(None),
                CommissionRule.university_id == university_id,
                CommissionRule.course_id.is_(None),
            ))

        if not scopes:
            return []

        result = await self.session.execute(
            select(CommissionRule)
            .where(CommissionRule.active.is_(True), or_(*scopes))
            .order_by(CommissionRule.id.asc())
        )
        return list(result.scalars().all())

    async def list_rules(
        self,
        agent_id: Optional[int] = None,
        university_id: Optional[int] = None,
        course_id: Optional[int] = None,
        active_only: bool = True,
    ) -> List[CommissionRule]:
        """Get rules filtered by scope fields, ordered by priority then creation."""
        query = select(CommissionRule)

        if active_only:
            query = query.where(CommissionRule.active.is_(True))
        if agent_id is not None:
            query = query.where(CommissionRule.agent_id == agent_id)
        if university_id is not None:
            query = query.where(CommissionRule.university_id == university_id)
        if course_id is not None:
            query = query.where(CommissionRule.course_id == course_id)

        query = query.order_by(CommissionRule.priority.asc(), CommissionRule.id.asc())

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete(self, rule: CommissionRule) -> None:
        """Delete rule."""
        await self.session.delete(rule)
        await self.session.flush()
