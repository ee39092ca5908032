"""Commission rule administration."""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.dto import CreateCommissionRuleDTO, UpdateCommissionRuleDTO, build_dto
from core.exceptions import CommissionRuleNotFoundError, RuleInUseError
from database.models import CommissionRule, CommissionType, CommissionPriority
from database.repositories import CommissionRuleRepository, CommissionRepository
from services.audit import AuditAction, AuditService

logger = logging.getLogger(__name__)

ENTITY = "CommissionRule"
SCOPE_FIELDS = ("agent_id", "university_id", "course_id")


class CommissionRuleService:
    """Create, edit, deactivate and delete commission rules."""

    def __init__(self, session: AsyncSession, audit: Optional[AuditService] = None):
        self.session = session
        self.rule_repo = CommissionRuleRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.audit = audit or AuditService()

    async def get_rule(self, rule_id: int) -> CommissionRule:
        rule = await self.rule_repo.get_by_id(rule_id)
        if not rule:
            raise CommissionRuleNotFoundError(rule_id)
        return rule

    async def list_rules(
        self,
        agent_id: Optional[int] = None,
        university_id: Optional[int] = None,
        course_id: Optional[int] = None,
        active_only: bool = True,
    ) -> List[CommissionRule]:
        return await self.rule_repo.list_rules(
            agent_id=agent_id,
            university_id=university_id,
            course_id=course_id,
            active_only=active_only,
        )

    async def create_rule(
        self,
        kind: CommissionType,
        value: Decimal,
        agent_id: Optional[int] = None,
        university_id: Optional[int] = None,
        course_id: Optional[int] = None,
        actor_id: Optional[int] = None,
    ) -> CommissionRule:
        """
        Create a rule with the priority implied by its scope.

        Raises:
            ValidationError: Scope without university/course, or percentage above 100
        """
        dto = build_dto(
            CreateCommissionRuleDTO,
            agent_id=agent_id,
            university_id=university_id,
            course_id=course_id,
            kind=kind,
            value=value,
        )

        rule = await self.rule_repo.create(
            kind=dto.kind,
            value=dto.value,
            agent_id=dto.agent_id,
            university_id=dto.university_id,
            course_id=dto.course_id,
        )
        await self.session.commit()

        logger.info(
            f"Commission rule created: #{rule.id} priority={rule.priority}",
            extra={"rule_id": rule.id, "actor_id": actor_id},
        )
        await self.audit.record(actor_id, AuditAction.CREATE, ENTITY, rule.id, new_value=rule.to_dict())
        return rule

    async def update_rule(
        self,
        rule_id: int,
        changes: Dict[str, Any],
        actor_id: Optional[int] = None,
    ) -> CommissionRule:
        """
        Apply changes to a rule. Existing commissions keep their snapshot.

        Fields explicitly set to None clear the scope part. The priority is
        re-derived whenever a scope field changes.
        """
        dto = build_dto(UpdateCommissionRuleDTO, **changes)
        provided = dto.model_dump(exclude_unset=True)

        rule = await self.get_rule(rule_id)
        old_value = rule.to_dict()

        merged = {
            "agent_id": rule.agent_id,
            "university_id": rule.university_id,
            "course_id": rule.course_id,
            "kind": rule.kind,
            "value": rule.value,
        }
        merged.update({k: v for k, v in provided.items() if k in merged})
        # Re-validate the resulting rule as a whole
        build_dto(CreateCommissionRuleDTO, **merged)

        for field, new in provided.items():
            setattr(rule, field, new)
        if any(field in provided for field in SCOPE_FIELDS):
            rule.priority = int(CommissionPriority.for_scope(rule.agent_id, rule.university_id, rule.course_id))

        await self.rule_repo.flush()
        await self.session.commit()
        await self.rule_repo.refresh(rule)

        logger.info(f"Commission rule updated: #{rule.id}", extra={"rule_id": rule.id, "actor_id": actor_id})
        await self.audit.record(
            actor_id, AuditAction.UPDATE, ENTITY, rule.id,
            old_value=old_value, new_value=rule.to_dict(),
        )
        return rule

    async def deactivate_rule(self, rule_id: int, actor_id: Optional[int] = None) -> CommissionRule:
        """Stop a rule from matching new enrollments."""
        return await self.update_rule(rule_id, {"active": False}, actor_id=actor_id)

    async def delete_rule(self, rule_id: int, actor_id: Optional[int] = None) -> None:
        """
        Delete a rule nothing references.

        Raises:
            CommissionRuleNotFoundError: Unknown rule
            RuleInUseError: Commissions were priced with this rule; deactivate it instead
        """
        rule = await self.get_rule(rule_id)

        references = await self.commission_repo.count_by_rule(rule_id)
        if references:
            raise RuleInUseError(rule_id, references)

        old_value = rule.to_dict()
        await self.rule_repo.delete(rule)
        await self.session.commit()

        logger.info(f"Commission rule deleted: #{rule_id}", extra={"rule_id": rule_id, "actor_id": actor_id})
        await self.audit.record(actor_id, AuditAction.DELETE, ENTITY, rule_id, old_value=old_value)
