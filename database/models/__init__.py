"""Database models package."""
from database.models.commission_rule import CommissionRule, CommissionType, CommissionPriority
from database.models.commission import Commission, CommissionStatus
from database.models.payout import Payout, PayoutStatus

__all__ = [
    "CommissionRule",
    "CommissionType",
    "CommissionPriority",
    "Commission",
    "CommissionStatus",
    "Payout",
    "PayoutStatus",
]
