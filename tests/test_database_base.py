"""Tests for engine/session helpers."""
import pytest
from decimal import Decimal

from sqlalchemy import select

from core.config import settings
from database.base import DBSession, close_db, init_db
from database.models import CommissionRule, CommissionType


@pytest.mark.asyncio
async def test_db_session_commits_and_rolls_back():
    assert settings.is_sqlite
    await init_db()
    try:
        async with DBSession() as session:
            session.add(CommissionRule(
                kind=CommissionType.FLAT, value=Decimal("100"), university_id=1, priority=4
            ))

        with pytest.raises(ValueError):
            async with DBSession() as session:
                session.add(CommissionRule(
                    kind=CommissionType.FLAT, value=Decimal("200"), university_id=2, priority=4
                ))
                await session.flush()
                raise ValueError("abort")

        async with DBSession() as session:
            result = await session.execute(select(CommissionRule.university_id))
            assert [row[0] for row in result] == [1]
    finally:
        await close_db()
