"""Tests for commission rule administration."""
import pytest
from decimal import Decimal

from core.exceptions import CommissionRuleNotFoundError, RuleInUseError, ValidationError
from database.models import CommissionType, CommissionPriority
from services.audit import AuditAction
from services.commission_rules import CommissionRuleService

AGENT_ID = 100
UNIVERSITY_ID = 10
COURSE_ID = 1000
ADMIN_ID = 1


@pytest.fixture
def rule_service(db_session, audit) -> CommissionRuleService:
    return CommissionRuleService(db_session, audit=audit)


@pytest.mark.asyncio
async def test_create_rule(rule_service, audit_sink):
    """Test rule creation stores scope, priority and audits."""
    rule = await rule_service.create_rule(
        kind=CommissionType.PERCENTAGE,
        value=Decimal("12.5"),
        agent_id=AGENT_ID,
        university_id=UNIVERSITY_ID,
        actor_id=ADMIN_ID,
    )

    assert rule.id is not None
    assert rule.priority == CommissionPriority.AGENT_UNIVERSITY
    assert rule.value == Decimal("12.50")
    assert rule.active is True

    event = audit_sink.write.await_args.args[0]
    assert event.action == AuditAction.CREATE
    assert event.entity_type == "CommissionRule"
    assert event.entity_id == rule.id
    assert event.actor_id == ADMIN_ID


@pytest.mark.asyncio
async def test_create_rule_requires_university_or_course(rule_service):
    with pytest.raises(ValidationError):
        await rule_service.create_rule(kind=CommissionType.FLAT, value=Decimal("100"), agent_id=AGENT_ID)


@pytest.mark.asyncio
async def test_create_rule_rejects_percentage_over_100(rule_service):
    with pytest.raises(ValidationError):
        await rule_service.create_rule(
            kind=CommissionType.PERCENTAGE, value=Decimal("150"), course_id=COURSE_ID
        )


@pytest.mark.asyncio
async def test_create_rule_rejects_negative_value(rule_service):
    with pytest.raises(ValidationError) as exc_info:
        await rule_service.create_rule(kind=CommissionType.FLAT, value=Decimal("-1"), course_id=COURSE_ID)

    assert exc_info.value.field == "value"


@pytest.mark.asyncio
async def test_update_rule_rederives_priority(rule_service):
    """Test moving a rule to another scope updates its tier."""
    rule = await rule_service.create_rule(
        kind=CommissionType.FLAT, value=Decimal("100"), university_id=UNIVERSITY_ID
    )
    assert rule.priority == CommissionPriority.UNIVERSITY_DEFAULT

    updated = await rule_service.update_rule(
        rule.id, {"agent_id": AGENT_ID, "course_id": COURSE_ID, "value": Decimal("250")}
    )

    assert updated.priority == CommissionPriority.AGENT_COURSE
    assert updated.value == Decimal("250.00")
    assert updated.kind == CommissionType.FLAT


@pytest.mark.asyncio
async def test_update_rule_validates_merged_rule(rule_service):
    rule = await rule_service.create_rule(
        kind=CommissionType.FLAT, value=Decimal("500"), course_id=COURSE_ID
    )

    # Switching to percentage keeps value 500
    with pytest.raises(ValidationError):
        await rule_service.update_rule(rule.id, {"kind": CommissionType.PERCENTAGE})

    # Clearing the only scope part
    with pytest.raises(ValidationError):
        await rule_service.update_rule(rule.id, {"course_id": None})


@pytest.mark.asyncio
async def test_update_unknown_rule(rule_service):
    with pytest.raises(CommissionRuleNotFoundError):
        await rule_service.update_rule(404, {"value": Decimal("1")})


@pytest.mark.asyncio
async def test_deactivate_rule(rule_service):
    rule = await rule_service.create_rule(
        kind=CommissionType.FLAT, value=Decimal("100"), university_id=UNIVERSITY_ID
    )

    deactivated = await rule_service.deactivate_rule(rule.id, actor_id=ADMIN_ID)

    assert deactivated.active is False
    assert await rule_service.list_rules() == []
    assert [r.id for r in await rule_service.list_rules(active_only=False)] == [rule.id]


@pytest.mark.asyncio
async def test_delete_unused_rule(rule_service, audit_sink):
    rule = await rule_service.create_rule(
        kind=CommissionType.FLAT, value=Decimal("100"), university_id=UNIVERSITY_ID
    )

    await rule_service.delete_rule(rule.id, actor_id=ADMIN_ID)

    with pytest.raises(CommissionRuleNotFoundError):
        await rule_service.get_rule(rule.id)
    assert audit_sink.write.await_args.args[0].action == AuditAction.DELETE


@pytest.mark.asyncio
async def test_delete_rule_in_use(rule_service, ledger):
    """Test a rule referenced by a commission cannot be deleted."""
    rule = await rule_service.create_rule(
        kind=CommissionType.FLAT, value=Decimal("100"), university_id=UNIVERSITY_ID
    )
    await ledger.create(
        application_id=1,
        agent_id=AGENT_ID,
        course_id=None,
        university_id=UNIVERSITY_ID,
        base_amount=Decimal("1000"),
    )

    with pytest.raises(RuleInUseError) as exc_info:
        await rule_service.delete_rule(rule.id)

    assert exc_info.value.references == 1
    assert (await rule_service.get_rule(rule.id)).id == rule.id


@pytest.mark.asyncio
async def test_rule_edit_keeps_commission_snapshot(rule_service, ledger):
    """Test editing a rule does not reprice existing commissions."""
    rule = await rule_service.create_rule(
        kind=CommissionType.PERCENTAGE, value=Decimal("10"), course_id=COURSE_ID
    )
    commission = await ledger.create(
        application_id=1,
        agent_id=AGENT_ID,
        course_id=COURSE_ID,
        university_id=None,
        base_amount=Decimal("1000"),
    )

    await rule_service.update_rule(rule.id, {"value": Decimal("50")})
    reloaded = await ledger.get(commission.id)

    assert reloaded.amount == Decimal("100.00")
    assert reloaded.value == Decimal("10.00")
