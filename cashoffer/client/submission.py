"""Client half of claim submission: validate the form, send it, update the profile."""

from typing import Protocol

from cashoffer.client.eligibility import EligibilityGate
from cashoffer.client.state import CachedIdentity
from cashoffer.common.errors import AlreadyClaimedError
from cashoffer.common.logging import logger
from cashoffer.services.claims.schemas import ClaimResponse, ClaimSubmitRequest, parse_submission


class ClaimSink(Protocol):
    async def submit_claim(self, req: ClaimSubmitRequest) -> ClaimResponse: ...


class ClaimSubmitter:
    """Submits at most one claim per profile.

    The once-per-profile rule lives in `hasClaimedCashOffer`; a second device
    can still submit its own claim.
    """

    def __init__(self, gate: EligibilityGate, sink: ClaimSink) -> None:
        self.gate = gate
        self.sink = sink

    async def submit(
        self,
        *,
        name: str,
        email: str,
        paypal_email: str,
        country: str,
        phone: str | None = None,
    ) -> ClaimResponse:
        """Validate and send the claim form with the current visit snapshot.

        Raises `ValidationError` (with field errors) before anything is sent,
        and `AlreadyClaimedError` if this profile already claimed.
        """

        state = self.gate.state()
        if state.has_claimed_offer:
            raise AlreadyClaimedError("this profile has already submitted a claim")
        req = parse_submission(
            {
                "name": name,
                "email": email,
                "paypal_email": paypal_email,
                "phone": phone,
                "country": country,
                "visit_count": state.count,
            }
        )
        claim = await self.sink.submit_claim(req)

        self.gate.mark_claimed()
        CachedIdentity(email=str(req.email), paypal_email=str(req.paypal_email)).save(self.gate.store)
        logger.info("cash offer claim submitted claim_id=%s", claim.id)
        return claim
