"""Tests for agent earnings aggregation."""
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, Mock

from database.models import CommissionStatus
from services.earnings import EarningsAggregator, EarningsSummary

AGENT_ID = 100
UNIVERSITY_ID = 10
ADMIN_ID = 1


def test_summary_to_dict():
    summary = EarningsSummary(
        total=Decimal("3.00"), pending=Decimal("1.00"), approved=Decimal("1.00"), paid=Decimal("1.00")
    )

    assert summary.to_dict() == {
        "totalEarnings": Decimal("3.00"),
        "pendingEarnings": Decimal("1.00"),
        "approvedEarnings": Decimal("1.00"),
        "paidEarnings": Decimal("1.00"),
    }


@pytest.mark.asyncio
async def test_summarize_quantizes_buckets():
    """Test sums are rounded to cents and total is their sum."""
    ledger = Mock()
    ledger.totals_by_status = AsyncMock(return_value={
        CommissionStatus.PENDING: Decimal("0.1"),
        CommissionStatus.APPROVED: Decimal("0.2"),
        CommissionStatus.PAID: Decimal("0"),
    })

    summary = await EarningsAggregator(AsyncMock(), ledger=ledger).summarize(AGENT_ID)

    assert summary.pending == Decimal("0.10")
    assert summary.approved == Decimal("0.20")
    assert summary.paid == Decimal("0.00")
    assert summary.total == Decimal("0.30")
    ledger.totals_by_status.assert_awaited_once_with(AGENT_ID)


@pytest.mark.asyncio
async def test_summarize_agent_without_commissions(db_session, ledger):
    summary = await EarningsAggregator(db_session, ledger=ledger).summarize(AGENT_ID)

    assert summary == EarningsSummary(
        total=Decimal("0.00"), pending=Decimal("0.00"), approved=Decimal("0.00"), paid=Decimal("0.00")
    )


@pytest.mark.asyncio
async def test_total_equals_bucket_sum_through_lifecycle(db_session, ledger, university_flat_rule):
    """Test total == pending + approved + paid after every step."""
    earnings = EarningsAggregator(db_session, ledger=ledger)

    def check(summary):
        assert summary.total == summary.pending + summary.approved + summary.paid

    commissions = []
    for application_id in (1, 2, 3):
        commissions.append(await ledger.create(
            application_id=application_id,
            agent_id=AGENT_ID,
            course_id=None,
            university_id=UNIVERSITY_ID,
            base_amount=Decimal("1000"),
        ))
        check(await earnings.summarize(AGENT_ID))

    await ledger.approve(commissions[0].id, approved_by=ADMIN_ID)
    await ledger.approve(commissions[1].id, approved_by=ADMIN_ID)
    summary = await earnings.summarize(AGENT_ID)
    check(summary)
    assert summary.pending == Decimal("500.00")
    assert summary.approved == Decimal("1000.00")

    await ledger.mark_paid_for_agent(AGENT_ID)
    summary = await earnings.summarize(AGENT_ID)
    check(summary)
    assert summary.approved == Decimal("0.00")
    assert summary.paid == Decimal("1000.00")
    assert summary.total == Decimal("1500.00")
