"""Eligibility Gate: counts visits and decides when to surface the claim form."""

from dataclasses import replace

from cashoffer.client.state import VisitorState
from cashoffer.client.storage import KeyValueStore
from cashoffer.common.config import settings
from cashoffer.common.logging import logger


class EligibilityGate:
    """Offers the claim form at most once per profile, after `threshold` visits."""

    def __init__(self, store: KeyValueStore, threshold: int = settings.offer_visit_threshold) -> None:
        self.store = store
        self.threshold = threshold

    def state(self) -> VisitorState:
        return VisitorState.load(self.store)

    def record_visit(self) -> VisitorState:
        """Increment the visit counter by exactly one; call once per page load."""

        current = VisitorState.load(self.store)
        updated = replace(current, count=current.count + 1)
        updated.save(self.store)
        return updated

    def should_offer_claim(self, state: VisitorState | None = None) -> bool:
        state = state or self.state()
        return state.count >= self.threshold and not state.has_seen_offer and not state.has_claimed_offer

    def on_page_load(self) -> tuple[VisitorState, bool]:
        """Record the visit and report whether the offer should be shown now."""

        state = self.record_visit()
        offer = self.should_offer_claim(state)
        if offer:
            logger.info("cash offer eligible visit_count=%s", state.count)
        return state, offer

    def mark_offer_shown(self) -> VisitorState:
        return self._set(has_seen_offer=True)

    def mark_offer_dismissed(self) -> VisitorState:
        return self._set(has_seen_offer=True)

    def mark_claimed(self) -> VisitorState:
        return self._set(has_claimed_offer=True)

    def _set(self, **flags: bool) -> VisitorState:
        updated = replace(VisitorState.load(self.store), **flags)
        updated.save(self.store)
        return updated
