"""Claim Store: authoritative claim records and the guarded status transitions.

Every write that changes `status` goes through `transition`, which validates the
state machine and applies the update with optimistic concurrency so two
operators acting on the same claim cannot both win.
"""

from datetime import datetime, timedelta

from sqlalchemy import func, or_, select, update

from cashoffer.common.clock import utcnow
from cashoffer.common.errors import ClaimNotFoundError, StateConflictError
from cashoffer.common.logging import bind_claim, logger
from cashoffer.common.metrics import claim_state_conflicts_total, claim_transitions_total
from cashoffer.common.state_machine import APPROVED, CLAIM_STATUSES, PENDING, validate_transition
from cashoffer.common.tracing import tracer
from cashoffer.services.claims.models import Claim, ClaimTimeline


class ClaimStore:
    """Owns claim persistence; shared by the claims and review services."""

    def __init__(self, session_factory, clock=utcnow, service_name: str = "claims") -> None:
        self.session_factory = session_factory
        self.clock = clock
        self.service_name = service_name

    def create(
        self,
        *,
        name: str,
        email: str,
        paypal_email: str,
        country: str,
        visit_count_at_claim: int,
        phone: str | None = None,
        user_agent: str | None = None,
    ) -> Claim:
        """Insert a new `pending` claim and its first timeline row."""

        with self.session_factory() as db:
            claim = Claim(
                name=name,
                email=email,
                paypal_email=paypal_email,
                phone=phone,
                country=country,
                visit_count_at_claim=visit_count_at_claim,
                user_agent=user_agent,
                status=PENDING,
                state_version=0,
                claimed_at=self.clock(),
                processed_at=None,
            )
            db.add(claim)
            db.flush()
            db.add(
                ClaimTimeline(
                    claim_id=claim.id,
                    from_state=None,
                    to_state=PENDING,
                    notes=None,
                    created_at=claim.claimed_at,
                )
            )
            db.commit()
            return claim

    def get(self, claim_id: str) -> Claim:
        with self.session_factory() as db:
            claim = db.get(Claim, claim_id)
            if claim is None:
                raise ClaimNotFoundError(claim_id)
            return claim

    def list_claims(self, status: str | None = None, limit: int = 100) -> list[Claim]:
        """Return claims newest-first, optionally filtered by status."""

        stmt = select(Claim).order_by(Claim.claimed_at.desc()).limit(limit)
        if status is not None:
            stmt = stmt.where(Claim.status == status)
        with self.session_factory() as db:
            return list(db.execute(stmt).scalars().all())

    def status_counts(self) -> dict[str, int]:
        """Count claims per status; every status is present, zero if unused."""

        counts = dict.fromkeys(CLAIM_STATUSES, 0)
        with self.session_factory() as db:
            rows = db.execute(select(Claim.status, func.count()).group_by(Claim.status)).all()
        for status, count in rows:
            counts[status] = count
        return counts

    def timeline(self, claim_id: str) -> list[ClaimTimeline]:
        with self.session_factory() as db:
            if db.get(Claim, claim_id) is None:
                raise ClaimNotFoundError(claim_id)
            return list(
                db.execute(
                    select(ClaimTimeline)
                    .where(ClaimTimeline.claim_id == claim_id)
                    .order_by(ClaimTimeline.created_at.asc())
                )
                .scalars()
                .all()
            )

    def find_recent_approved(
        self,
        email: str | None,
        paypal_email: str | None,
        window: timedelta,
        limit: int = 1,
        now: datetime | None = None,
    ) -> list[Claim]:
        """Approved claims processed inside `window`, matching either identity field.

        Either field matches independently, so two claims sharing only a PayPal
        address both match a lookup by that address.
        """

        matchers = []
        if email:
            matchers.append(Claim.email == email)
        if paypal_email:
            matchers.append(Claim.paypal_email == paypal_email)
        if not matchers:
            return []
        since = (now or self.clock()) - window
        stmt = (
            select(Claim)
            .where(Claim.status == APPROVED, Claim.processed_at >= since, or_(*matchers))
            .order_by(Claim.processed_at.desc())
            .limit(limit)
        )
        with self.session_factory() as db:
            return list(db.execute(stmt).scalars().all())

    def transition(self, claim_id: str, target: str, notes: str | None = None) -> Claim:
        """Move a claim to `target`, stamping `processed_at` and optional notes.

        Re-applying the claim's current status is a no-op: nothing is written and
        `processed_at` keeps the time of the first transition.
        """

        with bind_claim(claim_id), tracer.start_as_current_span("claim.transition") as span:
            span.set_attribute("claim.id", claim_id)
            span.set_attribute("claim.target_status", target)
            with self.session_factory() as db:
                claim = db.get(Claim, claim_id)
                if claim is None:
                    raise ClaimNotFoundError(claim_id)
                if claim.status == target:
                    logger.info("transition no-op claim_id=%s status=%s", claim_id, target)
                    return claim
                try:
                    validate_transition(claim.status, target, claim_id)
                except StateConflictError:
                    claim_state_conflicts_total.labels(service=self.service_name).inc()
                    logger.warning(
                        "illegal transition rejected claim_id=%s current=%s target=%s",
                        claim_id,
                        claim.status,
                        target,
                    )
                    raise
                claim = self._apply(db, claim, target, notes)
                db.commit()
                return claim

    def _apply(self, db, claim: Claim, target: str, notes: str | None) -> Claim:
        """Guarded UPDATE on `(id, status, state_version)`.

        Losing the race to an identical transition is a no-op and returns the
        stored claim; losing it to any other transition is a conflict.
        """

        from_status = claim.status
        current_version = claim.state_version
        processed_at = self.clock()
        values = {"status": target, "state_version": current_version + 1, "processed_at": processed_at}
        if notes is not None:
            values["admin_notes"] = notes
        result = db.execute(
            update(Claim)
            .where(
                Claim.id == claim.id,
                Claim.status == from_status,
                Claim.state_version == current_version,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            fresh = db.get(Claim, claim.id, populate_existing=True)
            if fresh is not None and fresh.status == target:
                logger.info("concurrent transition no-op claim_id=%s status=%s", claim.id, target)
                return fresh
            claim_state_conflicts_total.labels(service=self.service_name).inc()
            current = fresh.status if fresh is not None else from_status
            raise StateConflictError(claim.id, current, target, reason="concurrent update")

        claim.status = target
        claim.state_version = current_version + 1
        claim.processed_at = processed_at
        if notes is not None:
            claim.admin_notes = notes
        db.add(
            ClaimTimeline(
                claim_id=claim.id,
                from_state=from_status,
                to_state=target,
                notes=notes,
                created_at=processed_at,
            )
        )
        claim_transitions_total.labels(service=self.service_name, from_state=from_status, to_state=target).inc()
        logger.info("claim transitioned claim_id=%s %s -> %s", claim.id, from_status, target)
        return claim

    def annotate(self, claim_id: str, notes: str) -> Claim:
        """Replace `admin_notes` without touching status or `processed_at`."""

        with self.session_factory() as db:
            claim = db.get(Claim, claim_id)
            if claim is None:
                raise ClaimNotFoundError(claim_id)
            claim.admin_notes = notes
            db.commit()
            logger.info("claim annotated claim_id=%s", claim_id)
            return claim
