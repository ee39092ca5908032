"""Agent notifications about payout decisions."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol, Set

from core.config import settings
from database.models import Payout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayoutNotice:
    """Detached payout data handed to notifiers."""
    payout_id: int
    payout_number: str
    agent_id: int
    amount: Decimal
    currency: str
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None

    @classmethod
    def from_payout(cls, payout: Payout, currency: Optional[str] = None) -> "PayoutNotice":
        return cls(
            payout_id=payout.id,
            payout_number=payout.payout_number,
            agent_id=payout.agent_id,
            amount=payout.amount,
            currency=currency or settings.currency,
            payment_method=payout.payment_method,
            payment_reference=payout.payment_reference,
        )


class PayoutNotifier(Protocol):
    """Delivery channel for payout notifications (email, messenger, ...)."""

    async def payout_approved(self, notice: PayoutNotice) -> None:
        ...


def format_payout_approved(notice: PayoutNotice) -> str:
    """Message body for an approved payout."""
    text = (
        f"Payout Approved\n\n"
        f"Your payout request has been approved.\n"
        f"Amount: {notice.amount} {notice.currency}\n"
        f"Payout Number: {notice.payout_number}\n"
    )
    if notice.payment_method:
        text += f"Payment method: {notice.payment_method}\n"
    text += "\nThe payment will be processed shortly and credited to your registered bank account."
    return text


class LoggingPayoutNotifier:
    """Notifier that only logs the message it would send."""

    async def payout_approved(self, notice: PayoutNotice) -> None:
        logger.info(
            f"[NOTIFY] agent {notice.agent_id}: {format_payout_approved(notice)}",
            extra={"agent_id": notice.agent_id, "payout_id": notice.payout_id},
        )


class NotificationDispatcher:
    """
    Fire-and-forget delivery with retries.

    Each notification runs as a background task and is attempted up to
    `max_attempts` times, sleeping `backoff * 2**attempt` seconds between
    attempts. Failures are logged and never reach the caller.
    """

    def __init__(
        self,
        notifier: Optional[PayoutNotifier] = None,
        max_attempts: Optional[int] = None,
        backoff: Optional[float] = None,
    ):
        self.notifier = notifier or LoggingPayoutNotifier()
        self.max_attempts = max_attempts if max_attempts is not None else settings.notification_max_attempts
        self.backoff = backoff if backoff is not None else settings.notification_backoff_seconds
        self._tasks: Set[asyncio.Task] = set()

    def payout_approved(self, payout: Payout) -> asyncio.Task:
        """Schedule the approval notification for a payout."""
        notice = PayoutNotice.from_payout(payout)
        task = asyncio.create_task(self._deliver(notice))
        # Keep a strong reference until the task finishes
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver(self, notice: PayoutNotice) -> bool:
        for attempt in range(self.max_attempts):
            try:
                await self.notifier.payout_approved(notice)
                return True
            except Exception as e:
                logger.warning(
                    f"Payout notification failed (attempt {attempt + 1}/{self.max_attempts}): {e}",
                    extra={"agent_id": notice.agent_id, "payout_id": notice.payout_id},
                )
                if attempt + 1 < self.max_attempts:
                    await asyncio.sleep(self.backoff * 2 ** attempt)

        logger.error(
            f"Giving up on payout notification for {notice.payout_number}",
            extra={"agent_id": notice.agent_id, "payout_id": notice.payout_id},
        )
        return False

    @property
    def pending(self) -> int:
        """Number of deliveries still running."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for all scheduled deliveries to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
