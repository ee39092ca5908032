import os
from decimal import Decimal
from typing import AsyncGenerator
from unittest.mock import AsyncMock

# Point the global engine at SQLite before any project module reads settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from database.base import Base
from database.models import CommissionRule, CommissionType, Commission, CommissionStatus
from database.repositories import CommissionRuleRepository
from services.audit import AuditService
from services.commission_ledger import CommissionLedger
from services.notifications import NotificationDispatcher
from services.payouts import PayoutManager


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

AGENT_ID = 100
OTHER_AGENT_ID = 200
UNIVERSITY_ID = 10
COURSE_ID = 1000
ADMIN_ID = 1


@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """Create async engine for tests."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,  # Share the single in-memory database
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests."""
    async_session = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def audit_sink() -> AsyncMock:
    """Audit sink recording every written event."""
    sink = AsyncMock()
    sink.write = AsyncMock(return_value=None)
    return sink


@pytest.fixture
def audit(audit_sink) -> AuditService:
    return AuditService(sink=audit_sink)


@pytest.fixture
def notifier() -> AsyncMock:
    notifier = AsyncMock()
    notifier.payout_approved = AsyncMock(return_value=None)
    return notifier


@pytest_asyncio.fixture
async def dispatcher(notifier) -> AsyncGenerator[NotificationDispatcher, None]:
    """Dispatcher without backoff; drained after the test."""
    dispatcher = NotificationDispatcher(notifier=notifier, max_attempts=3, backoff=0)
    yield dispatcher
    await dispatcher.drain()


@pytest.fixture
def ledger(db_session, audit) -> CommissionLedger:
    return CommissionLedger(db_session, audit=audit)


@pytest.fixture
def payouts(db_session, ledger, audit, dispatcher) -> PayoutManager:
    return PayoutManager(
        db_session,
        ledger=ledger,
        audit=audit,
        notifications=dispatcher,
        strict=False,
    )


@pytest.fixture
def strict_payouts(db_session, ledger, audit, dispatcher) -> PayoutManager:
    return PayoutManager(
        db_session,
        ledger=ledger,
        audit=audit,
        notifications=dispatcher,
        strict=True,
    )


@pytest_asyncio.fixture
async def university_flat_rule(db_session: AsyncSession) -> CommissionRule:
    """University default rule paying a flat $500."""
    repo = CommissionRuleRepository(db_session)
    rule = await repo.create(
        kind=CommissionType.FLAT,
        value=Decimal("500"),
        university_id=UNIVERSITY_ID,
    )
    await db_session.commit()
    return rule


@pytest_asyncio.fixture
async def approved_commission(db_session, ledger, university_flat_rule) -> Commission:
    """Approved $500 commission of AGENT_ID."""
    commission = await ledger.create(
        application_id=5000,
        agent_id=AGENT_ID,
        course_id=None,
        university_id=UNIVERSITY_ID,
        base_amount=Decimal("20000"),
    )
    commission = await ledger.approve(commission.id, approved_by=ADMIN_ID)
    assert commission.status == CommissionStatus.APPROVED
    return commission
