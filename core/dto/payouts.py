"""Payout DTOs for data validation."""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class RequestPayoutDTO(BaseModel):
    """DTO for an agent's payout request."""

    agent_id: int = Field(..., description="Requesting agent")
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Requested amount")
    notes: Optional[str] = Field(None, max_length=1000, description="Optional notes")

    @field_validator('notes')
    @classmethod
    def clean_notes(cls, v: Optional[str]) -> Optional[str]:
        """Strip notes and drop empty strings."""
        if v is None:
            return v
        return v.strip() or None


class ApprovePayoutDTO(BaseModel):
    """DTO for approving a payout request."""

    payout_id: int = Field(..., description="Payout to approve")
    processed_by: int = Field(..., description="Administrator user ID")
    payment_method: Optional[str] = Field(None, max_length=50, description="bank_transfer, cheque, ...")
    payment_reference: Optional[str] = Field(None, max_length=255, description="Bank or transfer reference")


class RejectPayoutDTO(BaseModel):
    """DTO for rejecting a payout request."""

    payout_id: int = Field(..., description="Payout to reject")
    processed_by: int = Field(..., description="Administrator user ID")
    notes: Optional[str] = Field(None, max_length=1000, description="Rejection reason")


class MarkPayoutPaidDTO(BaseModel):
    """DTO for recording that an approved payout was transferred."""

    payout_id: int = Field(..., description="Payout that was transferred")
    payment_reference: Optional[str] = Field(None, max_length=255, description="Bank or transfer reference")
    processed_by: Optional[int] = Field(None, description="Administrator user ID")
