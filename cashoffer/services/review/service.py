"""Admin Review Workflow: operator actions over the claim state machine."""

from cashoffer.common.state_machine import APPROVED, PAID, REJECTED
from cashoffer.services.claims.models import Claim, ClaimTimeline
from cashoffer.services.claims.store import ClaimStore


class ReviewService:
    """The only writer of non-pending states.

    Button actions and the raw status dropdown both route through
    `ClaimStore.transition`, so the state machine is the single gate.
    """

    def __init__(self, store: ClaimStore) -> None:
        self.store = store

    def approve(self, claim_id: str, notes: str | None = None) -> Claim:
        return self.store.transition(claim_id, APPROVED, notes)

    def reject(self, claim_id: str, notes: str | None = None) -> Claim:
        return self.store.transition(claim_id, REJECTED, notes)

    def mark_paid(self, claim_id: str, notes: str | None = None) -> Claim:
        return self.store.transition(claim_id, PAID, notes)

    def set_status(self, claim_id: str, status: str, notes: str | None = None) -> Claim:
        return self.store.transition(claim_id, status, notes)

    def annotate(self, claim_id: str, notes: str) -> Claim:
        return self.store.annotate(claim_id, notes)

    def get(self, claim_id: str) -> Claim:
        return self.store.get(claim_id)

    def list_claims(self, status: str | None = None, limit: int = 100) -> list[Claim]:
        return self.store.list_claims(status=status, limit=limit)

    def summary(self) -> dict[str, int]:
        counts = self.store.status_counts()
        counts["total"] = sum(counts.values())
        return counts

    def timeline(self, claim_id: str) -> list[ClaimTimeline]:
        return self.store.timeline(claim_id)
