"""Commission DTOs for data validation."""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from database.models.commission_rule import CommissionType


MAX_PERCENTAGE = Decimal("100")


class CreateCommissionRuleDTO(BaseModel):
    """DTO for creating a commission rule."""

    agent_id: Optional[int] = Field(None, description="Agent scope (None for defaults)")
    university_id: Optional[int] = Field(None, description="University scope")
    course_id: Optional[int] = Field(None, description="Course scope")
    kind: CommissionType = Field(..., description="percentage or flat")
    value: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, description="Percent or fixed amount")

    @model_validator(mode="after")
    def validate_scope_and_value(self) -> "CreateCommissionRuleDTO":
        """A rule needs a university or course, and percentages stay within 0-100."""
        if self.university_id is None and self.course_id is None:
            raise ValueError("university_id or course_id is required")
        if self.kind == CommissionType.PERCENTAGE and self.value > MAX_PERCENTAGE:
            raise ValueError("percentage value must be between 0 and 100")
        return self


class UpdateCommissionRuleDTO(BaseModel):
    """DTO for updating a commission rule. Only provided fields change."""

    agent_id: Optional[int] = Field(None, description="New agent scope")
    university_id: Optional[int] = Field(None, description="New university scope")
    course_id: Optional[int] = Field(None, description="New course scope")
    kind: Optional[CommissionType] = Field(None, description="New pricing kind")
    value: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2, description="New value")
    active: Optional[bool] = Field(None, description="Active status")


class RecordCommissionDTO(BaseModel):
    """DTO for recording the commission owed on an enrolled application."""

    application_id: int = Field(..., description="Application that reached its commission milestone")
    agent_id: int = Field(..., description="Agent who owns the application")
    course_id: Optional[int] = Field(None, description="Course of the application")
    university_id: Optional[int] = Field(None, description="University of the application")
    base_amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, description="Tuition/fee basis")
