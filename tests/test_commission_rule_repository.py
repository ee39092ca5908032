"""Unit tests for CommissionRuleRepository."""
import pytest
from decimal import Decimal

from database.models import CommissionType, CommissionPriority
from database.repositories import CommissionRuleRepository


@pytest.mark.asyncio
async def test_create_derives_priority(db_session):
    """Test priority is implied by the rule scope."""
    repo = CommissionRuleRepository(db_session)

    agent_course = await repo.create(CommissionType.FLAT, Decimal("1"), agent_id=1, course_id=2)
    agent_uni = await repo.create(CommissionType.FLAT, Decimal("1"), agent_id=1, university_id=3)
    course = await repo.create(CommissionType.FLAT, Decimal("1"), course_id=2)
    uni = await repo.create(CommissionType.FLAT, Decimal("1"), university_id=3)

    assert agent_course.priority == CommissionPriority.AGENT_COURSE
    assert agent_uni.priority == CommissionPriority.AGENT_UNIVERSITY
    assert course.priority == CommissionPriority.COURSE_DEFAULT
    assert uni.priority == CommissionPriority.UNIVERSITY_DEFAULT
    assert agent_course.active is True


@pytest.mark.asyncio
async def test_find_candidates_matches_scopes_only(db_session):
    """Test candidate lookup returns active in-scope rules in creation order."""
    repo = CommissionRuleRepository(db_session)

    uni = await repo.create(CommissionType.FLAT, Decimal("100"), university_id=3)
    agent_course = await repo.create(CommissionType.PERCENTAGE, Decimal("10"), agent_id=1, course_id=2)
    await repo.create(CommissionType.FLAT, Decimal("100"), university_id=4)
    await repo.create(CommissionType.PERCENTAGE, Decimal("10"), agent_id=9, course_id=2)
    await repo.create(CommissionType.FLAT, Decimal("5"), course_id=2, active=False)
    await db_session.commit()

    candidates = await repo.find_candidates(agent_id=1, university_id=3, course_id=2)

    assert [rule.id for rule in candidates] == [uni.id, agent_course.id]


@pytest.mark.asyncio
async def test_find_candidates_without_scope(db_session):
    repo = CommissionRuleRepository(db_session)
    await repo.create(CommissionType.FLAT, Decimal("100"), university_id=3)

    assert await repo.find_candidates(agent_id=1, university_id=None, course_id=None) == []


@pytest.mark.asyncio
async def test_list_rules_orders_by_priority(db_session):
    repo = CommissionRuleRepository(db_session)
    uni = await repo.create(CommissionType.FLAT, Decimal("100"), university_id=3)
    agent_course = await repo.create(CommissionType.FLAT, Decimal("100"), agent_id=1, course_id=2)
    inactive = await repo.create(CommissionType.FLAT, Decimal("100"), course_id=2, active=False)
    await db_session.commit()

    active = await repo.list_rules()
    everything = await repo.list_rules(active_only=False)

    assert [rule.id for rule in active] == [agent_course.id, uni.id]
    assert [rule.id for rule in everything] == [agent_course.id, inactive.id, uni.id]
