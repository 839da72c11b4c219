"""Notification Reconciler: poll for approvals and show each one once per profile.

There is no push channel from the review service to the browser. Each tick
asks the claims service for the newest approved claim matching the cached
identity. The query may repeat any number of times; the delivery marker is
written before rendering, so a given claim is displayed at most once here.

Two tabs sharing a profile can both pass the marker check before either writes
it and show the popup twice. That race is accepted.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Protocol

from cashoffer.client.state import CachedIdentity, DeliveryMarkers
from cashoffer.client.storage import KeyValueStore
from cashoffer.common.clock import as_utc
from cashoffer.common.config import settings
from cashoffer.common.logging import bind_claim, logger
from cashoffer.common.metrics import approval_notifications_shown_total, reconciler_ticks_total
from cashoffer.common.tracing import tracer
from cashoffer.services.claims.schemas import ClaimResponse


class ApprovalSource(Protocol):
    async def fetch_recent_approval(self, identity: CachedIdentity) -> ClaimResponse | None: ...


def format_amount(amount_cents: int, currency: str) -> str:
    symbol = {"USD": "$", "EUR": "€", "GBP": "£"}.get(currency.upper())
    if symbol is None:
        return f"{amount_cents / 100:.2f} {currency.upper()}"
    return f"{symbol}{amount_cents / 100:.2f}"


@dataclass(frozen=True)
class ApprovalNotification:
    claim_id: str
    amount: str
    paypal_email: str
    processed_at: datetime

    @property
    def processed_date(self) -> str:
        """Long-form date, e.g. "October 19, 2026"."""

        return f"{self.processed_at:%B} {self.processed_at.day}, {self.processed_at.year}"

    @classmethod
    def from_claim(cls, claim: ClaimResponse, amount: str) -> "ApprovalNotification":
        return cls(
            claim_id=claim.id,
            amount=amount,
            paypal_email=claim.paypal_email,
            processed_at=as_utc(claim.processed_at),
        )


class FixedIntervalPolicy:
    """Poll every `interval` seconds regardless of failures (no backoff)."""

    def __init__(self, interval: float = settings.reconcile_interval_seconds) -> None:
        self.interval = interval

    def next_delay(self, consecutive_failures: int) -> float:
        return self.interval


class ExponentialBackoffPolicy:
    """Stretch the delay after consecutive failures, capped at `max_interval`."""

    def __init__(self, interval: float, factor: float = 2.0, max_interval: float = 600.0) -> None:
        self.interval = interval
        self.factor = factor
        self.max_interval = max_interval

    def next_delay(self, consecutive_failures: int) -> float:
        if consecutive_failures <= 0:
            return self.interval
        return min(self.max_interval, self.interval * self.factor**consecutive_failures)


class NotificationReconciler:
    """Per-tab polling loop delivering approval popups exactly once per profile."""

    def __init__(
        self,
        source: ApprovalSource,
        store: KeyValueStore,
        render: Callable[[ApprovalNotification], None],
        policy=None,
        amount: str | None = None,
    ) -> None:
        self.source = source
        self.store = store
        self.markers = DeliveryMarkers(store)
        self.render = render
        self.policy = policy or FixedIntervalPolicy()
        self.amount = amount or format_amount(settings.offer_amount_cents, settings.offer_currency)
        self.showing: ApprovalNotification | None = None
        self.consecutive_failures = 0
        self._stop = asyncio.Event()
        self._task: asyncio.Task | None = None

    async def tick(self) -> ApprovalNotification | None:
        """Run one reconciliation pass; returns the notification if one was shown.

        Query errors propagate; `run` is responsible for swallowing them.
        """

        identity = CachedIdentity.load(self.store)
        if identity.is_empty:
            reconciler_ticks_total.labels(outcome="no_identity").inc()
            return None

        with tracer.start_as_current_span("reconciler.tick"):
            claim = await self.source.fetch_recent_approval(identity)
        if claim is None:
            reconciler_ticks_total.labels(outcome="nothing_new").inc()
            return None

        with bind_claim(claim.id):
            if self.markers.has(claim.id):
                reconciler_ticks_total.labels(outcome="already_delivered").inc()
                logger.debug("approval already delivered claim_id=%s", claim.id)
                return None

            # Marker first: a crash after this point never re-renders the claim.
            self.markers.mark(claim.id)
            notification = ApprovalNotification.from_claim(claim, self.amount)
            self.showing = notification
            self.render(notification)
            approval_notifications_shown_total.inc()
            reconciler_ticks_total.labels(outcome="delivered").inc()
            logger.info("approval notification shown claim_id=%s", claim.id)
            return notification

    def dismiss(self) -> None:
        """User closed the popup; the delivery marker stays."""

        self.showing = None

    async def run(self) -> None:
        """Tick immediately, then on the policy's schedule until `stop()`."""

        while not self._stop.is_set():
            try:
                await self.tick()
                self.consecutive_failures = 0
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self.consecutive_failures += 1
                reconciler_ticks_total.labels(outcome="error").inc()
                logger.error("reconciler tick failed failures=%s error=%s", self.consecutive_failures, exc)
            delay = self.policy.next_delay(self.consecutive_failures)
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._stop.clear()
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        self._stop.set()
        if self._task is not None:
            await self._task
            self._task = None
