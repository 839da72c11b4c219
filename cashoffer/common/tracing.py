"""OpenTelemetry setup for the FastAPI apps plus a shared tracer for claim work.

Spans opened through `tracer` are no-ops until `setup_tracing` registers a
provider, so the store and reconciler can use them unconditionally.
"""

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

from cashoffer.common.config import settings


tracer = trace.get_tracer("cashoffer")


def setup_tracing(service_name: str) -> None:
    """Register a tracer provider exporting claim-service spans over OTLP HTTP."""

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint))
    )
    trace.set_tracer_provider(provider)


def instrument_app(app: FastAPI) -> None:
    """Attach request spans to a claims or review app, skipping probe routes."""

    FastAPIInstrumentor.instrument_app(app, excluded_urls="health,metrics")
