"""Audit reporting for state-changing commission and payout operations."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Protocol

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("audit")


class AuditAction(str, Enum):
    """Audit action enum."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    STATUS_CHANGE = "STATUS_CHANGE"


@dataclass(frozen=True)
class AuditEvent:
    """One reported state change."""
    actor_id: Optional[int]
    action: AuditAction
    entity_type: str
    entity_id: Optional[int]
    old_value: Optional[dict] = None
    new_value: Optional[dict] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AuditSink(Protocol):
    """Destination for audit events (audit log table, message bus, ...)."""

    async def write(self, event: AuditEvent) -> None:
        ...


class LoggingAuditSink:
    """Writes audit events to the `audit` logger."""

    async def write(self, event: AuditEvent) -> None:
        audit_logger.info(
            f"{event.action.value} {event.entity_type}#{event.entity_id}",
            extra={
                "actor_id": event.actor_id,
                "audit": {
                    "entity_type": event.entity_type,
                    "entity_id": event.entity_id,
                    "old": event.old_value,
                    "new": event.new_value,
                    "occurred_at": event.occurred_at.isoformat(),
                },
            },
        )


class AuditService:
    """Reports state changes to an audit sink without affecting the caller."""

    def __init__(self, sink: Optional[AuditSink] = None):
        self.sink = sink or LoggingAuditSink()

    async def record(
        self,
        actor_id: Optional[int],
        action: AuditAction,
        entity_type: str,
        entity_id: Optional[int],
        old_value: Optional[dict] = None,
        new_value: Optional[dict] = None,
    ) -> Optional[AuditEvent]:
        """
        Report one state change.

        Returns:
            The event, or None if the sink failed
        """
        event = AuditEvent(
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_value=old_value,
            new_value=new_value,
        )
        try:
            await self.sink.write(event)
        except Exception as e:
            # Audit logging must never break the main flow
            logger.error(
                f"Failed to write audit event {action.value} {entity_type}#{entity_id}: {e}",
                exc_info=True,
                extra={"actor_id": actor_id},
            )
            return None
        return event
