"""Error taxonomy for the claim lifecycle.

Only `StateConflictError` is meant to interrupt a human (the operator). The
others are either surfaced inline on the claim form or logged and retried.
"""


class ClaimError(Exception):
    """Base class for claim lifecycle errors."""


class ValidationError(ClaimError):
    """Submission rejected before any claim was created."""

    def __init__(self, field_errors: dict[str, str]) -> None:
        self.field_errors = dict(field_errors)
        detail = ", ".join(f"{field}: {message}" for field, message in sorted(self.field_errors.items()))
        super().__init__(f"invalid claim submission ({detail})")


class StateConflictError(ClaimError):
    """A transition the state machine does not allow, or a lost concurrent update."""

    def __init__(self, claim_id: str | None, current: str, target: str, reason: str | None = None) -> None:
        self.claim_id = claim_id
        self.current = current
        self.target = target
        message = f"Invalid transition: {current} -> {target}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ClaimNotFoundError(ClaimError):
    def __init__(self, claim_id: str) -> None:
        self.claim_id = claim_id
        super().__init__(f"claim not found: {claim_id}")


class TransientQueryError(ClaimError):
    """The reconciler's read failed; the next tick retries."""


class AlreadyClaimedError(ClaimError):
    """This browser profile has already submitted a claim."""
