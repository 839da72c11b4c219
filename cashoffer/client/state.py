"""Persisted browser-profile state: visitor counters, cached identity, delivery markers."""

from dataclasses import dataclass

from cashoffer.client.storage import KeyValueStore

VISIT_COUNT_KEY = "visitCount"
SEEN_OFFER_KEY = "hasSeenCashOffer"
CLAIMED_OFFER_KEY = "hasClaimedCashOffer"
USER_EMAIL_KEY = "userEmail"
USER_PAYPAL_KEY = "userPayPal"
APPROVAL_MARKER_PREFIX = "approval_shown_"


def _read_count(raw: str | None) -> int:
    try:
        return max(0, int(raw or "0"))
    except ValueError:
        return 0


@dataclass(frozen=True)
class VisitorState:
    count: int = 0
    has_seen_offer: bool = False
    has_claimed_offer: bool = False

    @classmethod
    def load(cls, store: KeyValueStore) -> "VisitorState":
        return cls(
            count=_read_count(store.get(VISIT_COUNT_KEY)),
            has_seen_offer=store.get(SEEN_OFFER_KEY) == "true",
            has_claimed_offer=store.get(CLAIMED_OFFER_KEY) == "true",
        )

    def save(self, store: KeyValueStore) -> None:
        store.set(VISIT_COUNT_KEY, str(self.count))
        if self.has_seen_offer:
            store.set(SEEN_OFFER_KEY, "true")
        if self.has_claimed_offer:
            store.set(CLAIMED_OFFER_KEY, "true")


@dataclass(frozen=True)
class CachedIdentity:
    """Email/PayPal pair captured at claim time; the reconciler's only query key."""

    email: str | None = None
    paypal_email: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.email and not self.paypal_email

    @classmethod
    def load(cls, store: KeyValueStore) -> "CachedIdentity":
        return cls(email=store.get(USER_EMAIL_KEY) or None, paypal_email=store.get(USER_PAYPAL_KEY) or None)

    def save(self, store: KeyValueStore) -> None:
        if self.email:
            store.set(USER_EMAIL_KEY, self.email)
        if self.paypal_email:
            store.set(USER_PAYPAL_KEY, self.paypal_email)


class DeliveryMarkers:
    """Append-only set of claim ids whose approval popup was already shown here.

    Markers are never removed; losing them (cleared site data) means a claim
    still inside the approval window is shown again.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def has(self, claim_id: str) -> bool:
        return self.store.get(APPROVAL_MARKER_PREFIX + claim_id) is not None

    def mark(self, claim_id: str) -> None:
        self.store.set(APPROVAL_MARKER_PREFIX + claim_id, "true")
