"""CommissionRule model - configured pricing policy for agent commissions."""
from datetime import datetime
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Optional

from sqlalchemy import BigInteger, Boolean, Integer, Numeric, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from database.base import Base, BigIntPK, enum_column


class CommissionType(str, Enum):
    """How a rule prices a commission."""
    PERCENTAGE = "percentage"  # Share of the base amount
    FLAT = "flat"  # Fixed amount regardless of base


class CommissionPriority(IntEnum):
    """Precedence tiers, lower wins."""
    AGENT_COURSE = 1
    AGENT_UNIVERSITY = 2
    COURSE_DEFAULT = 3
    UNIVERSITY_DEFAULT = 4

    @classmethod
    def for_scope(
        cls,
        agent_id: Optional[int],
        university_id: Optional[int],
        course_id: Optional[int],
    ) -> "CommissionPriority":
        """Derive the tier a rule with this scope belongs to."""
        if agent_id is not None and course_id is not None:
            return cls.AGENT_COURSE
        if agent_id is not None and university_id is not None:
            return cls.AGENT_UNIVERSITY
        if course_id is not None:
            return cls.COURSE_DEFAULT
        return cls.UNIVERSITY_DEFAULT


class CommissionRule(Base):
    """Commission rule scoped to an agent/university/course combination."""

    __tablename__ = "commission_rules"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        Index("ix_commission_rules_scope", "agent_id", "university_id", "course_id"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    # Scope (external references)
    agent_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
        comment="Agent scope, NULL for defaults"
    )
    university_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    course_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    # Pricing
    kind: Mapped[CommissionType] = enum_column(
        CommissionType,
        nullable=False,
        comment="percentage/flat"
    )
    value: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Percent (0-100) or fixed amount"
    )
    priority: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        comment="1 agent+course, 2 agent+university, 3 course, 4 university"
    )
    active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default="true",
        index=True
    )

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
            "agent_id": self.agent_id,
            "university_id": self.university_id,
            "course_id": self.course_id,
            "kind": self.kind.value if self.kind else None,
            "value": str(self.value),
            "priority": self.priority,
            "active": self.active,
        }

    def __repr__(self) -> str:
        return (
            f"<CommissionRule(id={self.id}, agent={self.agent_id}, university={self.university_id}, "
            f"course={self.course_id}, kind='{self.kind}', value={self.value}, priority={self.priority})>"
        )
