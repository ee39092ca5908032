"""Commission ledger - creates commission records and drives their lifecycle."""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.dto import RecordCommissionDTO, build_dto
from core.exceptions import (
    CommissionNotFoundError,
    DuplicateCommissionError,
    InvalidTransitionError,
)
from database.models import Commission, CommissionStatus
from database.repositories import CommissionRepository
from services.audit import AuditAction, AuditService
from services.commission_resolver import CommissionRuleResolver

logger = logging.getLogger(__name__)

ENTITY = "Commission"


class CommissionLedger:
    """
    Owner of commission records.

    Records are created once per application with a pricing snapshot and
    move strictly forward: pending -> approved -> paid. Only this class
    writes to commission records.
    """

    def __init__(
        self,
        session: AsyncSession,
        resolver: Optional[CommissionRuleResolver] = None,
        audit: Optional[AuditService] = None,
    ):
        self.session = session
        self.commission_repo = CommissionRepository(session)
        self.resolver = resolver or CommissionRuleResolver(session)
        self.audit = audit or AuditService()

    async def create(
        self,
        application_id: int,
        agent_id: int,
        course_id: Optional[int],
        university_id: Optional[int],
        base_amount: Decimal,
        actor_id: Optional[int] = None,
    ) -> Commission:
        """
        Price and record the commission owed for an application.

        A missing rule is not an error: the record is stored with amount 0.

        Raises:
            DuplicateCommissionError: The application already has a commission
            ValidationError: Invalid input (negative base amount, ...)
        """
        dto = build_dto(
            RecordCommissionDTO,
            application_id=application_id,
            agent_id=agent_id,
            course_id=course_id,
            university_id=university_id,
            base_amount=base_amount,
        )

        if await self.commission_repo.get_by_application(dto.application_id):
            raise DuplicateCommissionError(dto.application_id)

        resolved = await self.resolver.resolve(
            agent_id=dto.agent_id,
            course_id=dto.course_id,
            university_id=dto.university_id,
            base_amount=dto.base_amount,
        )

        try:
            commission = await self.commission_repo.create(
                application_id=dto.application_id,
                agent_id=dto.agent_id,
                base_amount=dto.base_amount,
                amount=resolved.amount,
                kind=resolved.kind,
                value=resolved.value,
                rule_id=resolved.rule_id,
                priority_used=resolved.priority_used,
            )
            await self.session.commit()
        except IntegrityError:
            # Lost a race against a concurrent create for the same application
            await self.session.rollback()
            raise DuplicateCommissionError(dto.application_id)

        logger.info(
            f"Commission recorded: #{commission.id} application={commission.application_id} "
            f"amount={commission.amount}",
            extra={
                "commission_id": commission.id,
                "agent_id": commission.agent_id,
                "application_id": commission.application_id,
                "rule_id": commission.rule_id,
            },
        )
        await self.audit.record(
            actor_id, AuditAction.CREATE, ENTITY, commission.id, new_value=commission.to_dict()
        )
        return commission

    async def get(self, commission_id: int) -> Commission:
        commission = await self.commission_repo.get_by_id(commission_id)
        if not commission:
            raise CommissionNotFoundError(commission_id)
        return commission

    async def get_by_application(self, application_id: int) -> Optional[Commission]:
        return await self.commission_repo.get_by_application(application_id)

    async def approve(self, commission_id: int, approved_by: int) -> Commission:
        """
        Approve a pending commission.

        Raises:
            CommissionNotFoundError: Unknown commission
            InvalidTransitionError: Commission is not pending
        """
        commission = await self.get(commission_id)
        old_status = commission.status

        if not old_status.can_transition_to(CommissionStatus.APPROVED):
            raise InvalidTransitionError(ENTITY, old_status.value, CommissionStatus.APPROVED.value)

        commission.status = CommissionStatus.APPROVED
        commission.approved_by = approved_by
        commission.approved_at = datetime.now(timezone.utc)
        await self.commission_repo.flush()
        await self.session.commit()

        logger.info(
            f"Commission approved: #{commission.id}",
            extra={"commission_id": commission.id, "agent_id": commission.agent_id, "actor_id": approved_by},
        )
        await self.audit.record(
            approved_by, AuditAction.APPROVE, ENTITY, commission.id,
            old_value={"status": old_status.value},
            new_value={"status": commission.status.value, "approved_by": approved_by},
        )
        return commission

    async def list_by_agent(
        self,
        agent_id: int,
        status: Optional[CommissionStatus] = None,
    ) -> List[Commission]:
        """All commissions of an agent, newest first."""
        return await self.commission_repo.get_all_by_agent(agent_id, status=status)

    async def list_commissions(
        self,
        agent_id: Optional[int] = None,
        status: Optional[CommissionStatus] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Commission], int]:
        """One page of commissions and the total count."""
        return await self.commission_repo.list_paginated(
            agent_id=agent_id, status=status, limit=limit, offset=offset
        )

    async def totals_by_status(self, agent_id: int) -> Dict[CommissionStatus, Decimal]:
        """Sum of amounts per status, read fresh from storage."""
        return await self.commission_repo.sum_by_status(agent_id)

    async def lock_approved(
        self,
        agent_id: int,
        approved_before: Optional[datetime] = None,
    ) -> List[Commission]:
        """Lock an agent's approved commissions for the current transaction."""
        return await self.commission_repo.lock_approved(agent_id, approved_before=approved_before)

    async def mark_paid_for_agent(
        self,
        agent_id: int,
        approved_before: Optional[datetime] = None,
        commit: bool = True,
    ) -> int:
        """
        Settle every approved commission of an agent.

        Pending commissions are untouched; calling again with nothing
        approved is a no-op.

        Args:
            agent_id: Agent to settle
            approved_before: Restrict to commissions approved at or before this time
            commit: Commit immediately, or leave it to the caller's transaction

        Returns:
            Number of commissions moved to paid
        """
        settled = await self.commission_repo.mark_paid_for_agent(agent_id, approved_before=approved_before)
        if commit:
            await self.session.commit()

        logger.info(
            f"Settled {settled} approved commission(s) for agent {agent_id}",
            extra={"agent_id": agent_id},
        )
        return settled
