"""Agent earnings computed from the commission ledger."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from database.models import CommissionStatus
from services.commission_ledger import CommissionLedger
from services.commission_resolver import CENT


@dataclass(frozen=True)
class EarningsSummary:
    """Commission sums of an agent per status."""
    total: Decimal
    pending: Decimal
    approved: Decimal
    paid: Decimal

    def to_dict(self) -> dict:
        return {
            "totalEarnings": self.total,
            "pendingEarnings": self.pending,
            "approvedEarnings": self.approved,
            "paidEarnings": self.paid,
        }


class EarningsAggregator:
    """Summarizes an agent's commissions. Always recomputed, never cached."""

    def __init__(self, session: AsyncSession, ledger: Optional[CommissionLedger] = None):
        self.session = session
        self.ledger = ledger or CommissionLedger(session)

    async def summarize(self, agent_id: int) -> EarningsSummary:
        """
        Current earnings of an agent.

        `total` is derived from the buckets, so total == pending + approved + paid.
        """
        sums = await self.ledger.totals_by_status(agent_id)

        pending = sums[CommissionStatus.PENDING].quantize(CENT)
        approved = sums[CommissionStatus.APPROVED].quantize(CENT)
        paid = sums[CommissionStatus.PAID].quantize(CENT)

        return EarningsSummary(
            total=pending + approved + paid,
            pending=pending,
            approved=approved,
            paid=paid,
        )
