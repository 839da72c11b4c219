import pytest
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from cashoffer.common.config import settings
from cashoffer.services.claims import main as claims_main
from cashoffer.services.review import main as review_main

HEADERS = {"X-API-Key": "test-api-key"}


def _form(**overrides):
    data = {
        "name": "Ada Visitor",
        "email": "a@x.com",
        "paypal_email": "a@paypal.com",
        "country": "US",
        "visit_count": 50,
    }
    data.update(overrides)
    return data


@pytest.fixture
def claims_api(monkeypatch, claim_service):
    monkeypatch.setattr(claims_main, "service", claim_service)
    return TestClient(claims_main.app)


@pytest.fixture
def review_api(monkeypatch, review):
    monkeypatch.setattr(review_main, "service", review)
    return TestClient(review_main.app)


def test_submit_claim_returns_pending_record(claims_api):
    resp = claims_api.post("/claims", json=_form(), headers={"User-Agent": "Mozilla/5.0"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "pending"
    assert body["processed_at"] is None
    assert body["visit_count_at_claim"] == 50
    assert claims_api.get(f"/claims/{body['id']}").json()["email"] == "a@x.com"


def test_submit_claim_below_threshold_is_422_with_field_errors(claims_api):
    resp = claims_api.post("/claims", json=_form(visit_count=10))

    assert resp.status_code == 422
    assert "visit_count" in resp.json()["detail"]["field_errors"]


def test_submit_claim_malformed_email_is_422(claims_api):
    assert claims_api.post("/claims", json=_form(email="nope")).status_code == 422


def test_unknown_claim_is_404(claims_api):
    assert claims_api.get("/claims/does-not-exist").status_code == 404


def test_approved_query_needs_identity(claims_api):
    assert claims_api.get("/claims/approved").status_code == 422


def test_approved_query_returns_newest_match(claims_api, review, make_claim):
    claim = make_claim()
    review.approve(claim.id)

    rows = claims_api.get("/claims/approved", params={"paypal_email": "a@paypal.com"}).json()

    assert [row["id"] for row in rows] == [claim.id]
    assert rows[0]["processed_at"].startswith("2026-10-19T12:00:00")


def test_probes(claims_api, review_api):
    assert claims_api.get("/health").json() == {"ok": True}
    assert review_api.get("/health").json() == {"ok": True}
    assert b"claims_submitted_total" in claims_api.get("/metrics").content


def test_ops_endpoints_require_api_key(review_api, make_claim):
    claim = make_claim()

    assert review_api.get("/ops/claims").status_code == 401
    assert review_api.post(f"/ops/claims/{claim.id}/approve", headers={"X-API-Key": "wrong"}).status_code == 401


def test_approve_then_mark_paid(review_api, make_claim, clock):
    claim = make_claim()

    approved = review_api.post(f"/ops/claims/{claim.id}/approve", headers=HEADERS)
    clock.advance(hours=1)
    paid = review_api.post(f"/ops/claims/{claim.id}/mark-paid", json={"notes": "sent"}, headers=HEADERS)

    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"
    assert paid.json()["status"] == "paid"
    assert paid.json()["admin_notes"] == "sent"
    assert paid.json()["processed_at"].startswith("2026-10-19T13:00:00")


def test_illegal_transition_is_409_with_current_status(review_api, review, make_claim):
    claim = make_claim()
    review.reject(claim.id)

    resp = review_api.post(f"/ops/claims/{claim.id}/mark-paid", headers=HEADERS)

    assert resp.status_code == 409
    assert resp.json()["detail"]["current_status"] == "rejected"
    assert resp.json()["detail"]["requested_status"] == "paid"


def test_raw_status_dropdown_uses_state_machine(review_api, make_claim):
    claim = make_claim()

    bad = review_api.put(f"/ops/claims/{claim.id}/status", json={"status": "paid"}, headers=HEADERS)
    unknown = review_api.put(f"/ops/claims/{claim.id}/status", json={"status": "refunded"}, headers=HEADERS)
    good = review_api.put(f"/ops/claims/{claim.id}/status", json={"status": "rejected"}, headers=HEADERS)

    assert bad.status_code == 409
    assert unknown.status_code == 422
    assert good.json()["status"] == "rejected"


def test_notes_listing_summary_and_timeline(review_api, review, make_claim, clock):
    first = make_claim(email="one@x.com")
    clock.advance(minutes=1)
    second = make_claim(email="two@x.com")
    clock.advance(minutes=1)
    review.approve(first.id)

    notes = review_api.put(f"/ops/claims/{second.id}/notes", json={"notes": "called"}, headers=HEADERS)
    listing = review_api.get("/ops/claims", params={"status": "PENDING"}, headers=HEADERS)
    summary = review_api.get("/ops/claims/summary", headers=HEADERS)
    timeline = review_api.get(f"/ops/claims/{first.id}/timeline", headers=HEADERS)

    assert notes.json()["admin_notes"] == "called"
    assert notes.json()["status"] == "pending"
    assert [row["id"] for row in listing.json()] == [second.id]
    assert summary.json() == {"pending": 1, "approved": 1, "rejected": 0, "paid": 0, "total": 2}
    assert [(row["from_state"], row["to_state"]) for row in timeline.json()] == [
        (None, "pending"),
        ("pending", "approved"),
    ]


def test_listing_rejects_unknown_status(review_api):
    assert review_api.get("/ops/claims", params={"status": "refunded"}, headers=HEADERS).status_code == 400


def test_ops_unknown_claim_is_404(review_api):
    assert review_api.post("/ops/claims/missing/approve", headers=HEADERS).status_code == 404
    assert review_api.get("/ops/claims/missing/timeline", headers=HEADERS).status_code == 404


@pytest.mark.parametrize("limit", [-1, 0, 501])
def test_listing_limit_is_bounded(review_api, limit):
    assert review_api.get("/ops/claims", params={"limit": limit}, headers=HEADERS).status_code == 422


def test_review_requests_are_counted_per_route(review_api):
    labels = {
        "service": settings.service_name,
        "route": "/ops/claims/{claim_id}",
        "method": "GET",
        "status_code": "404",
    }
    before = REGISTRY.get_sample_value("http_requests_total", labels) or 0.0

    review_api.get("/ops/claims/missing", headers=HEADERS)
    review_api.get("/ops/claims/also-missing", headers=HEADERS)

    assert REGISTRY.get_sample_value("http_requests_total", labels) == before + 2
