"""
Payout lifecycle management.

Payout lifecycle:
    REQUESTED -> APPROVED -> PAID
    REQUESTED -> REJECTED

Approving a payout settles the agent's whole approved commission
balance, independent of the requested amount.

With `strict_consistency` enabled the balance check and the insert of a
request run under row locks in one transaction and count payouts still
awaiting a decision against the balance; approval and settlement commit
together and only settle commissions approved before the payout was.
"""
import logging
import secrets
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.dto import (
    ApprovePayoutDTO,
    MarkPayoutPaidDTO,
    RejectPayoutDTO,
    RequestPayoutDTO,
    build_dto,
)
from core.exceptions import InsufficientFundsError, InvalidTransitionError, PayoutNotFoundError
from database.models import Payout, PayoutStatus
from database.repositories import PayoutRepository
from services.audit import AuditAction, AuditService
from services.commission_ledger import CommissionLedger
from services.earnings import EarningsAggregator
from services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)

ENTITY = "Payout"


class PayoutManager:
    """Accepts payout requests and drives them through their lifecycle."""

    def __init__(
        self,
        session: AsyncSession,
        ledger: Optional[CommissionLedger] = None,
        earnings: Optional[EarningsAggregator] = None,
        audit: Optional[AuditService] = None,
        notifications: Optional[NotificationDispatcher] = None,
        strict: Optional[bool] = None,
    ):
        self.session = session
        self.payout_repo = PayoutRepository(session)
        self.audit = audit or AuditService()
        self.ledger = ledger or CommissionLedger(session, audit=self.audit)
        self.earnings = earnings or EarningsAggregator(session, ledger=self.ledger)
        self.notifications = notifications or NotificationDispatcher()
        self.strict = settings.strict_consistency if strict is None else strict

    async def get(self, payout_id: int, for_update: bool = False) -> Payout:
        payout = await self.payout_repo.get_by_id(payout_id, for_update=for_update)
        if not payout:
            raise PayoutNotFoundError(payout_id)
        return payout

    async def list_payouts(
        self,
        agent_id: Optional[int] = None,
        status: Optional[PayoutStatus] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Payout], int]:
        """One page of payouts and the total count."""
        return await self.payout_repo.list_paginated(
            agent_id=agent_id, status=status, limit=limit, offset=offset
        )

    async def available_balance(self, agent_id: int) -> Decimal:
        """
        Amount an agent may request right now.

        Approved earnings; in strict mode minus payouts still awaiting a decision.
        """
        summary = await self.earnings.summarize(agent_id)
        available = summary.approved
        if self.strict:
            available -= await self.payout_repo.sum_outstanding(agent_id)
        return available

    async def request(
        self,
        agent_id: int,
        amount: Decimal,
        notes: Optional[str] = None,
    ) -> Payout:
        """
        Request a payout of approved earnings.

        Raises:
            InsufficientFundsError: Amount exceeds the available balance
            ValidationError: Amount not positive
        """
        dto = build_dto(RequestPayoutDTO, agent_id=agent_id, amount=amount, notes=notes)

        if self.strict:
            await self.ledger.lock_approved(dto.agent_id)

        available = await self.available_balance(dto.agent_id)
        if dto.amount > available:
            logger.info(
                f"Payout request refused: requested {dto.amount}, available {available}",
                extra={"agent_id": dto.agent_id},
            )
            raise InsufficientFundsError(dto.amount, available)

        payout_number = await self._generate_payout_number(dto.agent_id)
        payout = await self.payout_repo.create(
            payout_number=payout_number,
            agent_id=dto.agent_id,
            amount=dto.amount,
            notes=dto.notes,
        )
        await self.session.commit()

        logger.info(
            f"Payout requested: {payout.payout_number} amount={payout.amount}",
            extra={"payout_id": payout.id, "agent_id": payout.agent_id},
        )
        await self.audit.record(
            dto.agent_id, AuditAction.CREATE, ENTITY, payout.id, new_value=payout.to_dict()
        )
        return payout

    async def approve(
        self,
        payout_id: int,
        processed_by: int,
        payment_method: Optional[str] = None,
        payment_reference: Optional[str] = None,
    ) -> Payout:
        """
        Approve a requested payout and settle the agent's approved commissions.

        The agent is notified in the background; a failed notification does
        not undo the approval.

        Raises:
            PayoutNotFoundError: Unknown payout
            InvalidTransitionError: Payout is not in requested status
        """
        dto = build_dto(
            ApprovePayoutDTO,
            payout_id=payout_id,
            processed_by=processed_by,
            payment_method=payment_method,
            payment_reference=payment_reference,
        )

        payout = await self.get(dto.payout_id, for_update=self.strict)
        old_status = self._check_transition(payout, PayoutStatus.APPROVED)

        payout.status = PayoutStatus.APPROVED
        payout.processed_by = dto.processed_by
        payout.processed_at = datetime.now(timezone.utc)
        payout.payment_method = dto.payment_method
        payout.payment_reference = dto.payment_reference
        await self.payout_repo.flush()

        if self.strict:
            await self.ledger.lock_approved(payout.agent_id, approved_before=payout.processed_at)
            settled = await self.ledger.mark_paid_for_agent(
                payout.agent_id,
                approved_before=payout.processed_at,
                commit=False,
            )
            await self.session.commit()
        else:
            await self.session.commit()
            settled = await self.ledger.mark_paid_for_agent(payout.agent_id)

        logger.info(
            f"Payout approved: {payout.payout_number}, settled {settled} commission(s)",
            extra={"payout_id": payout.id, "agent_id": payout.agent_id, "actor_id": dto.processed_by},
        )
        await self.audit.record(
            dto.processed_by, AuditAction.APPROVE, ENTITY, payout.id,
            old_value={"status": old_status.value},
            new_value={"status": payout.status.value, "settled_commissions": settled},
        )

        self._notify_approved(payout)
        return payout

    async def reject(
        self,
        payout_id: int,
        processed_by: int,
        notes: Optional[str] = None,
    ) -> Payout:
        """
        Reject a requested payout. Commissions are untouched.

        Raises:
            PayoutNotFoundError: Unknown payout
            InvalidTransitionError: Payout is not in requested status
        """
        dto = build_dto(RejectPayoutDTO, payout_id=payout_id, processed_by=processed_by, notes=notes)

        payout = await self.get(dto.payout_id)
        old_status = self._check_transition(payout, PayoutStatus.REJECTED)

        payout.status = PayoutStatus.REJECTED
        payout.processed_by = dto.processed_by
        payout.processed_at = datetime.now(timezone.utc)
        if dto.notes:
            payout.notes = dto.notes
        await self.payout_repo.flush()
        await self.session.commit()

        logger.info(
            f"Payout rejected: {payout.payout_number}",
            extra={"payout_id": payout.id, "agent_id": payout.agent_id, "actor_id": dto.processed_by},
        )
        await self.audit.record(
            dto.processed_by, AuditAction.REJECT, ENTITY, payout.id,
            old_value={"status": old_status.value},
            new_value={"status": payout.status.value, "notes": dto.notes},
        )
        return payout

    async def mark_paid(
        self,
        payout_id: int,
        payment_reference: Optional[str] = None,
        processed_by: Optional[int] = None,
    ) -> Payout:
        """
        Record that an approved payout was actually transferred.

        Raises:
            PayoutNotFoundError: Unknown payout
            InvalidTransitionError: Payout is not approved
        """
        dto = build_dto(
            MarkPayoutPaidDTO,
            payout_id=payout_id,
            payment_reference=payment_reference,
            processed_by=processed_by,
        )

        payout = await self.get(dto.payout_id)
        old_status = self._check_transition(payout, PayoutStatus.PAID)

        payout.status = PayoutStatus.PAID
        payout.processed_at = datetime.now(timezone.utc)
        if dto.processed_by is not None:
            payout.processed_by = dto.processed_by
        if dto.payment_reference:
            payout.payment_reference = dto.payment_reference
        await self.payout_repo.flush()
        await self.session.commit()

        logger.info(
            f"Payout marked as paid: {payout.payout_number}",
            extra={"payout_id": payout.id, "agent_id": payout.agent_id, "actor_id": dto.processed_by},
        )
        await self.audit.record(
            dto.processed_by, AuditAction.STATUS_CHANGE, ENTITY, payout.id,
            old_value={"status": old_status.value},
            new_value={"status": payout.status.value, "payment_reference": payout.payment_reference},
        )
        return payout

    @staticmethod
    def _check_transition(payout: Payout, target: PayoutStatus) -> PayoutStatus:
        current = payout.status
        if not current.can_transition_to(target):
            raise InvalidTransitionError(ENTITY, current.value, target.value)
        return current

    def _notify_approved(self, payout: Payout) -> None:
        try:
            self.notifications.payout_approved(payout)
        except Exception as e:
            logger.error(
                f"Failed to schedule payout notification: {e}",
                exc_info=True,
                extra={"payout_id": payout.id, "agent_id": payout.agent_id},
            )

    async def _generate_payout_number(self, agent_id: int) -> str:
        """PREFIX-<epoch ms>-<agent>, suffixed when the number is already taken."""
        timestamp_ms = int(datetime.now(timezone.utc).timestamp() * 1000)
        base = f"{settings.payout_number_prefix}-{timestamp_ms}-{agent_id}"

        payout_number = base
        while await self.payout_repo.get_by_number(payout_number):
            payout_number = f"{base}-{secrets.token_hex(2).upper()}"
        return payout_number
