"""Claim state machine transitions enforced by the claim store."""

from cashoffer.common.errors import StateConflictError

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
PAID = "paid"

CLAIM_STATUSES: tuple[str, ...] = (PENDING, APPROVED, REJECTED, PAID)

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    PENDING: {APPROVED, REJECTED},
    APPROVED: {PAID},
    REJECTED: set(),
    PAID: set(),
}

TERMINAL_STATES: frozenset[str] = frozenset(state for state, targets in ALLOWED_TRANSITIONS.items() if not targets)


def validate_transition(current: str, new: str, claim_id: str | None = None) -> None:
    """Raise when a transition is not allowed by the state machine."""

    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise StateConflictError(claim_id, current, new)
