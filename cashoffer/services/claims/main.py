"""HTTP surface for claim submission and the browser's approval polling."""

from uuid import uuid4

from fastapi import FastAPI, Header, HTTPException, Query

from cashoffer.common.config import settings
from cashoffer.common.db import make_session_factory
from cashoffer.common.errors import ClaimNotFoundError, ValidationError
from cashoffer.common.logging import configure_logging, trace_id_ctx
from cashoffer.common.metrics import http_metrics_middleware, metrics_response
from cashoffer.common.startup import log_startup_config
from cashoffer.common.tracing import instrument_app, setup_tracing
from cashoffer.services.claims.schemas import ClaimResponse, ClaimSubmitRequest
from cashoffer.services.claims.service import ClaimService
from cashoffer.services.claims.store import ClaimStore

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings.service_name,
    ["postgres_dsn", "offer_visit_threshold", "approval_window_hours", "log_level"],
)
service = ClaimService(
    ClaimStore(make_session_factory(settings.postgres_dsn, create_schema=settings.postgres_dsn.startswith("sqlite")))
)

app = FastAPI(title="Cash Offer Claims Service")
instrument_app(app)
app.middleware("http")(http_metrics_middleware)


def _validation_error(exc: ValidationError) -> HTTPException:
    return HTTPException(status_code=422, detail={"field_errors": exc.field_errors})


@app.post("/claims", response_model=ClaimResponse, status_code=201)
def submit_claim(
    req: ClaimSubmitRequest,
    user_agent: str | None = Header(default=None),
    x_trace_id: str | None = Header(default=None),
):
    """Create a `pending` claim from the offer form."""

    trace_id_ctx.set(x_trace_id or str(uuid4()))
    try:
        claim = service.submit(req, user_agent=user_agent)
    except ValidationError as exc:
        raise _validation_error(exc) from exc
    return ClaimResponse.model_validate(claim)


@app.get("/claims/approved", response_model=list[ClaimResponse])
def recent_approvals(
    email: str | None = None,
    paypal_email: str | None = None,
    limit: int = Query(default=1, ge=1, le=50),
):
    """Approved claims for either identity field inside the approval window, newest first."""

    try:
        claims = service.recent_approvals(email, paypal_email, limit=limit)
    except ValidationError as exc:
        raise _validation_error(exc) from exc
    return [ClaimResponse.model_validate(claim) for claim in claims]


@app.get("/claims/{claim_id}", response_model=ClaimResponse)
def get_claim(claim_id: str):
    """Fetch one claim."""

    try:
        claim = service.get(claim_id)
    except ClaimNotFoundError as exc:
        raise HTTPException(status_code=404, detail="claim not found") from exc
    return ClaimResponse.model_validate(claim)


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()
