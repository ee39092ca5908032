"""
Data Transfer Objects (DTOs) for data validation.

This package contains Pydantic models for validating input data
before it reaches the commission and payout services.
"""

from core.dto.base import build_dto
from core.dto.commissions import (
    CreateCommissionRuleDTO,
    UpdateCommissionRuleDTO,
    RecordCommissionDTO,
)
from core.dto.payouts import (
    RequestPayoutDTO,
    ApprovePayoutDTO,
    RejectPayoutDTO,
    MarkPayoutPaidDTO,
)

__all__ = [
    'build_dto',
    'CreateCommissionRuleDTO',
    'UpdateCommissionRuleDTO',
    'RecordCommissionDTO',
    'RequestPayoutDTO',
    'ApprovePayoutDTO',
    'RejectPayoutDTO',
    'MarkPayoutPaidDTO',
]
