"""
Commission rule resolution.

Picks the single applicable commission rule for an enrollment and prices
it. Tiers are evaluated in strict precedence, first match wins:

    1. agent + course            (university ignored)
    2. agent + university        (course-less rule)
    3. course default            (no agent)
    4. university default        (no agent, no course)

Within a tier the earliest-created rule wins.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from database.models import CommissionRule, CommissionType, CommissionPriority
from database.repositories import CommissionRuleRepository

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ResolvedCommission:
    """Priced outcome of a resolution. `rule_id` is None when nothing matched."""
    amount: Decimal
    kind: Optional[CommissionType]
    value: Decimal
    rule_id: Optional[int]
    priority_used: Optional[int]

    @property
    def matched(self) -> bool:
        return self.rule_id is not None


NO_COMMISSION = ResolvedCommission(
    amount=Decimal("0.00"),
    kind=None,
    value=Decimal("0"),
    rule_id=None,
    priority_used=None,
)


@dataclass(frozen=True)
class EnrollmentScope:
    agent_id: Optional[int]
    course_id: Optional[int]
    university_id: Optional[int]


RulePredicate = Callable[[CommissionRule, EnrollmentScope], bool]


def _agent_course(rule: CommissionRule, scope: EnrollmentScope) -> bool:
    return (
        scope.agent_id is not None
        and scope.course_id is not None
        and rule.agent_id == scope.agent_id
        and rule.course_id == scope.course_id
    )


def _agent_university(rule: CommissionRule, scope: EnrollmentScope) -> bool:
    return (
        scope.agent_id is not None
        and scope.university_id is not None
        and rule.agent_id == scope.agent_id
        and rule.university_id == scope.university_id
        and rule.course_id is None
    )


def _course_default(rule: CommissionRule, scope: EnrollmentScope) -> bool:
    return (
        scope.course_id is not None
        and rule.agent_id is None
        and rule.course_id == scope.course_id
    )


def _university_default(rule: CommissionRule, scope: EnrollmentScope) -> bool:
    return (
        scope.university_id is not None
        and rule.agent_id is None
        and rule.university_id == scope.university_id
        and rule.course_id is None
    )


TIERS: Tuple[Tuple[CommissionPriority, RulePredicate], ...] = (
    (CommissionPriority.AGENT_COURSE, _agent_course),
    (CommissionPriority.AGENT_UNIVERSITY, _agent_university),
    (CommissionPriority.COURSE_DEFAULT, _course_default),
    (CommissionPriority.UNIVERSITY_DEFAULT, _university_default),
)


def select_rule(
    candidates: Sequence[CommissionRule],
    scope: EnrollmentScope,
) -> Optional[Tuple[CommissionRule, CommissionPriority]]:
    """
    Pick the winning rule among candidates.

    Candidates must be in creation order; inactive rules are skipped.

    Returns:
        (rule, tier) or None if no tier matches
    """
    active = [rule for rule in candidates if rule.active]
    for tier, predicate in TIERS:
        for rule in active:
            if predicate(rule, scope):
                return rule, tier
    return None


def compute_amount(kind: CommissionType, value: Decimal, base_amount: Decimal) -> Decimal:
    """
    Price a commission.

    Percentage: base * value / 100, rounded half-up to cents.
    Flat: the value itself, whatever the base.
    """
    if kind == CommissionType.PERCENTAGE:
        return (Decimal(base_amount) * Decimal(value) / HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)
    if kind == CommissionType.FLAT:
        return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    raise ValueError(f"Unknown commission type: {kind}")


class CommissionRuleResolver:
    """Resolves and prices the commission rule for an enrollment."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.rule_repo = CommissionRuleRepository(session)

    async def resolve(
        self,
        agent_id: Optional[int],
        course_id: Optional[int],
        university_id: Optional[int],
        base_amount: Decimal,
    ) -> ResolvedCommission:
        """
        Resolve the commission owed for an enrollment.

        Args:
            agent_id: Agent owning the application
            course_id: Course applied to
            university_id: University offering the course
            base_amount: Tuition/fee basis for percentage rules

        Returns:
            ResolvedCommission; NO_COMMISSION when no rule applies
        """
        candidates: List[CommissionRule] = await self.rule_repo.find_candidates(
            agent_id=agent_id,
            university_id=university_id,
            course_id=course_id,
        )
        scope = EnrollmentScope(agent_id=agent_id, course_id=course_id, university_id=university_id)

        selected = select_rule(candidates, scope)
        if selected is None:
            logger.warning(
                f"No commission rule found: agent={agent_id}, course={course_id}, university={university_id}",
                extra={"agent_id": agent_id},
            )
            return NO_COMMISSION

        rule, tier = selected
        amount = compute_amount(rule.kind, rule.value, base_amount)

        logger.info(
            f"Resolved commission rule #{rule.id} (tier {int(tier)}): {rule.kind.value} {rule.value} -> {amount}",
            extra={"agent_id": agent_id, "rule_id": rule.id},
        )

        return ResolvedCommission(
            amount=amount,
            kind=rule.kind,
            value=Decimal(rule.value),
            rule_id=rule.id,
            priority_used=int(tier),
        )
