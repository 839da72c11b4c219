"""Review service API for operators.

Every endpoint except the probes requires the shared `X-API-Key`. Illegal
transitions come back as 409 with the claim's actual status so the operator UI
can refresh instead of guessing.
"""

from uuid import uuid4

from fastapi import FastAPI, Header, HTTPException, Query

from cashoffer.common.config import settings
from cashoffer.common.db import make_session_factory
from cashoffer.common.errors import ClaimError, ClaimNotFoundError, StateConflictError
from cashoffer.common.logging import configure_logging, trace_id_ctx
from cashoffer.common.metrics import http_metrics_middleware, metrics_response
from cashoffer.common.startup import log_startup_config
from cashoffer.common.state_machine import CLAIM_STATUSES
from cashoffer.common.tracing import instrument_app, setup_tracing
from cashoffer.services.claims.schemas import (
    ClaimResponse,
    NotesRequest,
    ReviewActionRequest,
    StatusUpdateRequest,
    TimelineEntry,
)
from cashoffer.services.claims.store import ClaimStore
from cashoffer.services.review.service import ReviewService

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(settings.service_name, ["postgres_dsn", "api_key", "log_level"])
service = ReviewService(
    ClaimStore(
        make_session_factory(settings.postgres_dsn, create_schema=settings.postgres_dsn.startswith("sqlite")),
        service_name="review",
    )
)

app = FastAPI(title="Cash Offer Review Service")
instrument_app(app)
app.middleware("http")(http_metrics_middleware)


def enforce_api_key(x_api_key: str | None) -> None:
    """Simple API-key gate for ops endpoints."""

    if x_api_key != settings.api_key:
        raise HTTPException(status_code=401, detail="invalid API key")


def _review_error(exc: ClaimError) -> HTTPException:
    """Map review errors to HTTP status codes."""

    if isinstance(exc, ClaimNotFoundError):
        return HTTPException(status_code=404, detail="claim not found")
    if isinstance(exc, StateConflictError):
        return HTTPException(
            status_code=409,
            detail={"message": str(exc), "current_status": exc.current, "requested_status": exc.target},
        )
    return HTTPException(status_code=400, detail=str(exc))


def _run(action, *args) -> ClaimResponse:
    trace_id_ctx.set(str(uuid4()))
    try:
        claim = action(*args)
    except ClaimError as exc:
        raise _review_error(exc) from exc
    return ClaimResponse.model_validate(claim)


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/ops/claims", response_model=list[ClaimResponse])
def list_claims(
    status: str | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    x_api_key: str | None = Header(default=None),
):
    """List claims newest first, optionally filtered by status."""

    enforce_api_key(x_api_key)
    if status is not None and status.lower() not in CLAIM_STATUSES:
        raise HTTPException(status_code=400, detail=f"unknown status {status}")
    rows = service.list_claims(status=status.lower() if status else None, limit=limit)
    return [ClaimResponse.model_validate(row) for row in rows]


@app.get("/ops/claims/summary")
def claims_summary(x_api_key: str | None = Header(default=None)):
    """Claim counts per status."""

    enforce_api_key(x_api_key)
    return service.summary()


@app.get("/ops/claims/{claim_id}", response_model=ClaimResponse)
def get_claim(claim_id: str, x_api_key: str | None = Header(default=None)):
    enforce_api_key(x_api_key)
    return _run(service.get, claim_id)


@app.get("/ops/claims/{claim_id}/timeline", response_model=list[TimelineEntry])
def claim_timeline(claim_id: str, x_api_key: str | None = Header(default=None)):
    """Transition history for one claim, oldest first."""

    enforce_api_key(x_api_key)
    try:
        rows = service.timeline(claim_id)
    except ClaimError as exc:
        raise _review_error(exc) from exc
    return [TimelineEntry.model_validate(row) for row in rows]


@app.post("/ops/claims/{claim_id}/approve", response_model=ClaimResponse)
def approve_claim(
    claim_id: str,
    req: ReviewActionRequest | None = None,
    x_api_key: str | None = Header(default=None),
):
    """Approve a pending claim; repeating it on an approved claim is a no-op."""

    enforce_api_key(x_api_key)
    return _run(service.approve, claim_id, req.notes if req else None)


@app.post("/ops/claims/{claim_id}/reject", response_model=ClaimResponse)
def reject_claim(
    claim_id: str,
    req: ReviewActionRequest | None = None,
    x_api_key: str | None = Header(default=None),
):
    """Reject a pending claim."""

    enforce_api_key(x_api_key)
    return _run(service.reject, claim_id, req.notes if req else None)


@app.post("/ops/claims/{claim_id}/mark-paid", response_model=ClaimResponse)
def mark_claim_paid(
    claim_id: str,
    req: ReviewActionRequest | None = None,
    x_api_key: str | None = Header(default=None),
):
    """Record payout for an approved claim."""

    enforce_api_key(x_api_key)
    return _run(service.mark_paid, claim_id, req.notes if req else None)


@app.put("/ops/claims/{claim_id}/status", response_model=ClaimResponse)
def set_claim_status(
    claim_id: str,
    req: StatusUpdateRequest,
    x_api_key: str | None = Header(default=None),
):
    """Raw status change; validated by the same state machine as the buttons."""

    enforce_api_key(x_api_key)
    return _run(service.set_status, claim_id, req.status, req.notes)


@app.put("/ops/claims/{claim_id}/notes", response_model=ClaimResponse)
def annotate_claim(
    claim_id: str,
    req: NotesRequest,
    x_api_key: str | None = Header(default=None),
):
    """Replace admin notes without changing status."""

    enforce_api_key(x_api_key)
    return _run(service.annotate, claim_id, req.notes)
