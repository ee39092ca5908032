"""Database repositories package."""
from database.repositories.commission_rule import CommissionRuleRepository
from database.repositories.commission import CommissionRepository
from database.repositories.payout import PayoutRepository

__all__ = [
    "CommissionRuleRepository",
    "CommissionRepository",
    "PayoutRepository",
]
