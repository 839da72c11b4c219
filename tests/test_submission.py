import pytest

from cashoffer.client.eligibility import EligibilityGate
from cashoffer.client.state import CachedIdentity
from cashoffer.client.storage import MemoryStore
from cashoffer.client.submission import ClaimSubmitter
from cashoffer.common.errors import AlreadyClaimedError, ValidationError


class RecordingSink:
    def __init__(self, inner=None):
        self.inner = inner
        self.calls = 0

    async def submit_claim(self, req):
        self.calls += 1
        return await self.inner.submit_claim(req)


@pytest.fixture
def eligible_gate():
    return EligibilityGate(MemoryStore({"visitCount": "50", "hasSeenCashOffer": "true"}), threshold=50)


async def test_successful_submission_updates_profile(eligible_gate, in_process, review):
    submitter = ClaimSubmitter(eligible_gate, in_process)

    claim = await submitter.submit(name="Ada", email="a@x.com", paypal_email="a@paypal.com", country="US")

    assert claim.status == "pending"
    assert claim.visit_count_at_claim == 50
    assert eligible_gate.state().has_claimed_offer is True
    assert CachedIdentity.load(eligible_gate.store) == CachedIdentity("a@x.com", "a@paypal.com")
    assert review.summary()["pending"] == 1


async def test_invalid_email_is_rejected_before_sending(eligible_gate, in_process):
    sink = RecordingSink(in_process)

    with pytest.raises(ValidationError) as excinfo:
        await ClaimSubmitter(eligible_gate, sink).submit(
            name="Ada", email="nope", paypal_email="a@paypal.com", country="US"
        )

    assert "email" in excinfo.value.field_errors
    assert sink.calls == 0
    assert eligible_gate.state().has_claimed_offer is False
    assert CachedIdentity.load(eligible_gate.store).is_empty


async def test_second_submission_from_same_profile_is_refused(eligible_gate, in_process):
    submitter = ClaimSubmitter(eligible_gate, in_process)
    await submitter.submit(name="Ada", email="a@x.com", paypal_email="a@paypal.com", country="US")

    with pytest.raises(AlreadyClaimedError):
        await submitter.submit(name="Ada", email="a@x.com", paypal_email="a@paypal.com", country="US")


async def test_server_side_rejection_leaves_profile_untouched(in_process):
    gate = EligibilityGate(MemoryStore({"visitCount": "12"}), threshold=50)

    with pytest.raises(ValidationError) as excinfo:
        await ClaimSubmitter(gate, in_process).submit(
            name="Ada", email="a@x.com", paypal_email="a@paypal.com", country="US"
        )

    assert "visit_count" in excinfo.value.field_errors
    assert gate.state().has_claimed_offer is False
