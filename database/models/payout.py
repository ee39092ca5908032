"""Payout model - an agent's request to be paid approved commission."""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import BigInteger, String, Numeric, Text, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from database.base import Base, BigIntPK, enum_column


class PayoutStatus(str, Enum):
    """Payout status enum."""
    REQUESTED = "requested"  # Submitted by agent
    APPROVED = "approved"  # Approved by admin, commissions settled
    REJECTED = "rejected"  # Terminal
    PAID = "paid"  # Terminal, funds transferred

    @property
    def is_terminal(self) -> bool:
        return not _PAYOUT_TRANSITIONS[self]

    def can_transition_to(self, target: "PayoutStatus") -> bool:
        """requested -> approved -> paid, requested -> rejected."""
        return target in _PAYOUT_TRANSITIONS[self]


_PAYOUT_TRANSITIONS: dict[PayoutStatus, frozenset[PayoutStatus]] = {
    PayoutStatus.REQUESTED: frozenset({PayoutStatus.APPROVED, PayoutStatus.REJECTED}),
    PayoutStatus.APPROVED: frozenset({PayoutStatus.PAID}),
    PayoutStatus.REJECTED: frozenset(),
    PayoutStatus.PAID: frozenset(),
}


class Payout(Base):
    """Payout request model."""

    __tablename__ = "payouts"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        Index("ix_payouts_agent_status", "agent_id", "status"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    payout_number: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
        comment="Human-readable number, e.g. PAY-1718000000000-42"
    )
    agent_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    status: Mapped[PayoutStatus] = enum_column(
        PayoutStatus,
        nullable=False,
        default=PayoutStatus.REQUESTED,
        comment="requested/approved/rejected/paid"
    )

    # Payment details
    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    payment_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Processing
    processed_by: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    processed_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

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
            "payout_number": self.payout_number,
            "agent_id": self.agent_id,
            "amount": str(self.amount),
            "status": self.status.value,
            "payment_method": self.payment_method,
            "payment_reference": self.payment_reference,
            "processed_by": self.processed_by,
        }

    def __repr__(self) -> str:
        return (
            f"<Payout(id={self.id}, number='{self.payout_number}', agent={self.agent_id}, "
            f"amount={self.amount}, status='{self.status}')>"
        )
