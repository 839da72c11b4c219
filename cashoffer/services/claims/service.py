"""Claim submission and the reconciliation read path."""

from datetime import timedelta

from cashoffer.common.config import settings
from cashoffer.common.errors import ValidationError
from cashoffer.common.logging import bind_claim, logger
from cashoffer.common.metrics import approval_queries_total, claim_submissions_rejected_total, claims_submitted_total
from cashoffer.services.claims.models import Claim
from cashoffer.services.claims.schemas import ClaimSubmitRequest
from cashoffer.services.claims.store import ClaimStore


class ClaimService:
    """Creates pending claims and answers "recently approved for this identity"."""

    def __init__(
        self,
        store: ClaimStore,
        visit_threshold: int = settings.offer_visit_threshold,
        approval_window: timedelta = timedelta(hours=settings.approval_window_hours),
        service_name: str = "claims",
    ) -> None:
        self.store = store
        self.visit_threshold = visit_threshold
        self.approval_window = approval_window
        self.service_name = service_name

    def submit(self, req: ClaimSubmitRequest, user_agent: str | None = None) -> Claim:
        """Persist a new `pending` claim bound to the submitted identity.

        The request is already schema-valid; this adds the eligibility rule that
        the visit snapshot must have reached the offer threshold.
        """

        if req.visit_count < self.visit_threshold:
            claim_submissions_rejected_total.labels(service=self.service_name, reason="below_threshold").inc()
            logger.info(
                "claim rejected visit_count=%s threshold=%s", req.visit_count, self.visit_threshold
            )
            raise ValidationError({"visit_count": f"must be at least {self.visit_threshold}"})

        claim = self.store.create(
            name=req.name,
            email=str(req.email),
            paypal_email=str(req.paypal_email),
            phone=req.phone,
            country=req.country,
            visit_count_at_claim=req.visit_count,
            user_agent=user_agent,
        )
        with bind_claim(claim.id):
            claims_submitted_total.labels(service=self.service_name).inc()
            logger.info("claim submitted claim_id=%s visit_count=%s", claim.id, claim.visit_count_at_claim)
        return claim

    def get(self, claim_id: str) -> Claim:
        return self.store.get(claim_id)

    def recent_approvals(self, email: str | None, paypal_email: str | None, limit: int = 1) -> list[Claim]:
        """Newest approved claims for either identity field within the approval window."""

        if not email and not paypal_email:
            raise ValidationError({"email": "email or paypal_email is required"})
        approval_queries_total.labels(service=self.service_name).inc()
        return self.store.find_recent_approved(email, paypal_email, self.approval_window, limit=limit)
