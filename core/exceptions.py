"""
Custom application exceptions.

These exceptions represent business logic errors of the commission and
payout core. Each one is scoped to a single request and carries the
HTTP-equivalent status the calling surface should answer with.
"""
from decimal import Decimal
from typing import Any, Optional


class AgentCRMError(Exception):
    """Base exception for all application errors."""

    message: str = "An error occurred"
    status_code: int = 400

    def __init__(self, message: Optional[str] = None, **kwargs):
        self.message = message or self.message
        self.details = kwargs
        super().__init__(self.message)


# ============== Not found ==============

class NotFoundError(AgentCRMError):
    """Referenced entity does not exist."""
    message = "Not found"
    status_code = 404
    entity: str = "Entity"

    def __init__(self, entity_id: Optional[Any] = None):
        self.entity_id = entity_id
        super().__init__(
            f"{self.entity} #{entity_id} not found" if entity_id is not None else f"{self.entity} not found",
            entity_id=entity_id,
        )


class CommissionRuleNotFoundError(NotFoundError):
    """Commission rule not found."""
    entity = "Commission rule"


class CommissionNotFoundError(NotFoundError):
    """Commission record not found."""
    entity = "Commission"


class PayoutNotFoundError(NotFoundError):
    """Payout request not found."""
    entity = "Payout"


# ============== Commissions ==============

class CommissionError(AgentCRMError):
    """Base commission error."""
    message = "Commission error"


class DuplicateCommissionError(CommissionError):
    """A commission already exists for this application."""
    message = "Commission already recorded for this application"

    def __init__(self, application_id: int):
        self.application_id = application_id
        super().__init__(
            f"Commission already recorded for application #{application_id}",
            application_id=application_id,
        )


class RuleInUseError(CommissionError):
    """Rule is still referenced by commission records."""
    message = "Commission rule is referenced by existing commissions"

    def __init__(self, rule_id: int, references: int):
        self.rule_id = rule_id
        self.references = references
        super().__init__(
            f"Commission rule #{rule_id} is referenced by {references} commission(s)",
            rule_id=rule_id,
            references=references,
        )


# ============== Status machine ==============

class InvalidTransitionError(AgentCRMError):
    """Invalid status transition."""
    message = "Invalid status transition"

    def __init__(self, entity: str, current_status: str, target_status: str):
        self.entity = entity
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Cannot move {entity} from '{current_status}' to '{target_status}'",
            entity=entity,
            current_status=current_status,
            target_status=target_status,
        )


# ============== Payouts ==============

class PayoutError(AgentCRMError):
    """Base payout error."""
    message = "Payout error"


class InsufficientFundsError(PayoutError):
    """Requested payout exceeds approved earnings."""
    message = "Insufficient approved earnings for payout"

    def __init__(self, requested: Decimal, available: Decimal):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient approved earnings for payout: requested {requested}, available {available}",
            requested=requested,
            available=available,
        )


# ============== Validation ==============

class ValidationError(AgentCRMError):
    """Data validation error."""
    message = "Validation error"

    def __init__(self, field: str, error: str):
        self.field = field
        self.error = error
        super().__init__(f"Invalid value for '{field}': {error}", field=field)
