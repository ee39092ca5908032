"""Commission model - the priced obligation owed to an agent for one application."""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import BigInteger, Integer, Numeric, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from database.base import Base, BigIntPK, enum_column
from database.models.commission_rule import CommissionType


class CommissionStatus(str, Enum):
    """Commission status enum."""
    PENDING = "pending"  # Priced, waiting for admin approval
    APPROVED = "approved"  # Approved, counts towards payable balance
    PAID = "paid"  # Settled by an approved payout

    def can_transition_to(self, target: "CommissionStatus") -> bool:
        """Forward-only: pending -> approved -> paid."""
        return target in _COMMISSION_TRANSITIONS[self]


_COMMISSION_TRANSITIONS: dict[CommissionStatus, frozenset[CommissionStatus]] = {
    CommissionStatus.PENDING: frozenset({CommissionStatus.APPROVED}),
    CommissionStatus.APPROVED: frozenset({CommissionStatus.PAID}),
    CommissionStatus.PAID: frozenset(),
}


class Commission(Base):
    """Commission record with an immutable pricing snapshot."""

    __tablename__ = "commissions"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        Index("ix_commissions_agent_status", "agent_id", "status"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    # References (external except rule_id)
    application_id: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        unique=True,
        comment="One commission per application"
    )
    agent_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    rule_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
        index=True,
        comment="Resolved rule, NULL when no rule matched"
    )

    # Pricing snapshot, fixed at creation
    base_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Tuition/fee basis"
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Commission owed"
    )
    kind: Mapped[Optional[CommissionType]] = enum_column(CommissionType, nullable=True)
    value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    priority_used: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Lifecycle
    status: Mapped[CommissionStatus] = enum_column(
        CommissionStatus,
        nullable=False,
        default=CommissionStatus.PENDING,
        comment="pending/approved/paid"
    )
    approved_by: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    def to_dict(self) -> dict:
        """Plain snapshot used for audit old/new values."""
        return {
            "id": self.id,
            "application_id": self.application_id,
            "agent_id": self.agent_id,
            "rule_id": self.rule_id,
            "base_amount": str(self.base_amount),
            "amount": str(self.amount),
            "kind": self.kind.value if self.kind else None,
            "value": str(self.value),
            "priority_used": self.priority_used,
            "status": self.status.value,
        }

    def __repr__(self) -> str:
        return (
            f"<Commission(id={self.id}, application={self.application_id}, agent={self.agent_id}, "
            f"amount={self.amount}, status='{self.status}')>"
        )
