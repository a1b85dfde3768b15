"""
Distributed Tracing with OpenTelemetry.

Spans cover inbound requests (FastAPI), queries (SQLAlchemy), and each
outbound generation call. Generation spans carry the tool, voice and
result sizes so slow providers can be told apart from slow databases.
"""

from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.trace import Span, Status, StatusCode, Tracer

from app.config import settings

TRACER_NAME = "app.generation"

# Routes that would otherwise produce a span per scrape/probe
EXCLUDED_URLS = "health,metrics,v1/status"


def setup_tracing() -> None:
    """
    Configure the global tracer provider with OTLP export.

    Sampling follows the parent's decision when there is one, otherwise
    keeps `tracing_sample_ratio` of new traces.
    """
    if not settings.tracing_enabled:
        return

    resource = Resource.create(
        {
            "service.name": settings.service_name,
            "service.version": settings.api_version,
            "deployment.environment": settings.environment,
        }
    )

    provider = TracerProvider(
        resource=resource,
        sampler=ParentBased(TraceIdRatioBased(settings.tracing_sample_ratio)),
    )
    provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(endpoint=settings.otlp_endpoint, insecure=settings.otlp_insecure)
        )
    )
    trace.set_tracer_provider(provider)


def instrument_fastapi(app: Any) -> None:
    """Instrument the FastAPI app; probe and scrape routes are excluded."""
    if not settings.tracing_enabled:
        return

    FastAPIInstrumentor.instrument_app(app, excluded_urls=EXCLUDED_URLS)


def instrument_sqlalchemy(engine: Any) -> None:
    """Instrument one async engine (called as each engine is built)."""
    if not settings.tracing_enabled:
        return

    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


def get_tracer(name: str = TRACER_NAME) -> Tracer:
    return trace.get_tracer(name)


def span_attributes(**attributes: Any) -> dict[str, str | int | float | bool]:
    """
    Normalize attributes for OpenTelemetry: None is dropped, anything that
    is not a primitive is stringified, keys are namespaced under `writeai.`.
    """
    normalized: dict[str, str | int | float | bool] = {}
    for key, value in attributes.items():
        if value is None:
            continue
        if not isinstance(value, (str, int, float, bool)):
            value = str(value)
        normalized[f"writeai.{key}"] = value
    return normalized


def set_span_error(span: Span, error: BaseException) -> None:
    span.set_status(Status(StatusCode.ERROR, str(error)))
    span.record_exception(error)
    span.set_attribute("writeai.error_type", type(error).__name__)


class trace_operation:
    """
    Span around one outbound generation step.

    Usage:
        with trace_operation("text_generation", tool_type="article") as span:
            content = await provider.generate(...)
            span.set_attributes(span_attributes(word_count=420))

    Exceptions mark the span as failed and propagate unchanged.
    """

    def __init__(self, operation_name: str, **attributes: Any) -> None:
        self.operation_name = operation_name
        self.attributes = span_attributes(**attributes)
        self._span_cm: Any = None

    def __enter__(self) -> Span:
        self._span_cm = get_tracer().start_as_current_span(
            self.operation_name,
            attributes=self.attributes,
            record_exception=False,
            set_status_on_exception=False,
        )
        return self._span_cm.__enter__()

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_val is not None:
            set_span_error(trace.get_current_span(), exc_val)
        self._span_cm.__exit__(exc_type, exc_val, exc_tb)
