import os
from datetime import datetime, timedelta, timezone

import pytest

os.environ.setdefault("POSTGRES_DSN", "sqlite://")
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("OTEL_SDK_DISABLED", "true")

from cashoffer.client.state import CachedIdentity
from cashoffer.client.storage import MemoryStore
from cashoffer.common.db import make_session_factory
from cashoffer.services.claims import models  # noqa: F401
from cashoffer.services.claims.schemas import ClaimResponse, ClaimSubmitRequest
from cashoffer.services.claims.service import ClaimService
from cashoffer.services.claims.store import ClaimStore
from cashoffer.services.review.service import ReviewService


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InProcessClaims:
    """Claim sink + approval source wired straight to ClaimService."""

    def __init__(self, service: ClaimService) -> None:
        self.service = service
        self.queries = 0

    async def submit_claim(self, req: ClaimSubmitRequest) -> ClaimResponse:
        return ClaimResponse.model_validate(self.service.submit(req, user_agent="pytest"))

    async def fetch_recent_approval(self, identity: CachedIdentity) -> ClaimResponse | None:
        self.queries += 1
        claims = self.service.recent_approvals(identity.email, identity.paypal_email, limit=1)
        return ClaimResponse.model_validate(claims[0]) if claims else None


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def session_factory():
    return make_session_factory("sqlite://", create_schema=True)


@pytest.fixture
def store(session_factory, clock):
    return ClaimStore(session_factory, clock=clock)


@pytest.fixture
def claim_service(store):
    return ClaimService(store, visit_threshold=50, approval_window=timedelta(hours=24))


@pytest.fixture
def review(store):
    return ReviewService(store)


@pytest.fixture
def in_process(claim_service):
    return InProcessClaims(claim_service)


@pytest.fixture
def profile():
    return MemoryStore()


@pytest.fixture
def make_claim(store):
    def _make(email="a@x.com", paypal_email="a@paypal.com", visit_count=50, name="Ada Visitor"):
        return store.create(
            name=name,
            email=email,
            paypal_email=paypal_email,
            country="US",
            visit_count_at_claim=visit_count,
        )

    return _make
