"""
Metrics Collection with Prometheus.

Exposes business and system metrics for monitoring.
"""

import time
from enum import StrEnum

from prometheus_client import REGISTRY, Counter, Gauge, Histogram, Info, generate_latest

from app.config import settings


class MetricLabels(StrEnum):
    """Standard metric label names."""

    ENDPOINT = "endpoint"
    METHOD = "method"
    STATUS_CODE = "status_code"
    OPERATION = "operation"
    KIND = "kind"
    TOOL_TYPE = "tool_type"
    OUTCOME = "outcome"
    RESOURCE = "resource"
    ACTION_TYPE = "action_type"
    ERROR_TYPE = "error_type"


class WriteAIMetrics:
    """
    Centralized metrics for the WriteAI Pro API.

    Covers:
    - HTTP requests (rate, duration, in progress)
    - Generations (rate by kind/tool/outcome, provider latency)
    - Output volume (words generated, audio seconds)
    - Quota denials and ledger append failures
    - Errors by type
    """

    def __init__(self) -> None:
        """Initialize all Prometheus metrics."""

        # ====================================================================
        # Service Info
        # ====================================================================
        self.service_info = Info(
            "writeai_service",
            "Service information",
        )
        self.service_info.info(
            {
                "version": settings.api_version,
                "service_name": settings.service_name,
            }
        )

        # ====================================================================
        # HTTP Metrics
        # ====================================================================
        self.http_requests_total = Counter(
            "writeai_http_requests_total",
            "Total HTTP requests",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD, MetricLabels.STATUS_CODE],
        )

        self.http_request_duration_seconds = Histogram(
            "writeai_http_request_duration_seconds",
            "HTTP request duration in seconds",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
        )

        self.http_requests_in_progress = Gauge(
            "writeai_http_requests_in_progress",
            "Number of HTTP requests currently being processed",
            [MetricLabels.METHOD],
        )

        # ====================================================================
        # Generation Metrics
        # ====================================================================
        self.generations_total = Counter(
            "writeai_generations_total",
            "Total generation requests by kind, tool and outcome",
            [MetricLabels.KIND, MetricLabels.TOOL_TYPE, MetricLabels.OUTCOME],
        )

        self.generation_duration_seconds = Histogram(
            "writeai_generation_duration_seconds",
            "Provider round-trip duration in seconds",
            [MetricLabels.KIND],
            buckets=(0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0),
        )

        self.words_generated_total = Counter(
            "writeai_words_generated_total",
            "Total words produced by text generation",
            [MetricLabels.TOOL_TYPE],
        )

        self.audio_seconds_generated_total = Counter(
            "writeai_audio_seconds_generated_total",
            "Estimated seconds of synthesized audio",
        )

        # ====================================================================
        # Quota / Ledger Metrics
        # ====================================================================
        self.quota_denials_total = Counter(
            "writeai_quota_denials_total",
            "Generation requests denied by the quota gate",
            [MetricLabels.RESOURCE],
        )

        self.ledger_append_failures_total = Counter(
            "writeai_ledger_append_failures_total",
            "Usage ledger appends that failed to persist",
            [MetricLabels.ACTION_TYPE],
        )

        self.projects_created_total = Counter(
            "writeai_projects_created_total",
            "Total writing projects created",
            [MetricLabels.TOOL_TYPE],
        )

        # ====================================================================
        # Database Metrics
        # ====================================================================
        self.db_write_verifications_total = Counter(
            "writeai_db_write_verifications_total",
            "Total write verification checks",
            ["success"],
        )

        # ====================================================================
        # Error Metrics
        # ====================================================================
        self.errors_total = Counter(
            "writeai_errors_total",
            "Total errors by type",
            [MetricLabels.ERROR_TYPE, MetricLabels.OPERATION],
        )

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def record_http_request(
        self, endpoint: str, method: str, status_code: int, duration: float
    ) -> None:
        """Record HTTP request metrics."""
        self.http_requests_total.labels(
            endpoint=endpoint, method=method, status_code=status_code
        ).inc()
        self.http_request_duration_seconds.labels(endpoint=endpoint, method=method).observe(
            duration
        )

    def record_generation(
        self, kind: str, tool_type: str, success: bool, duration: float
    ) -> None:
        """Record one generation attempt."""
        self.generations_total.labels(
            kind=kind, tool_type=tool_type, outcome="success" if success else "failure"
        ).inc()
        self.generation_duration_seconds.labels(kind=kind).observe(duration)

    def record_words_generated(self, tool_type: str, words: int) -> None:
        """Record text output volume."""
        self.words_generated_total.labels(tool_type=tool_type).inc(words)

    def record_audio_seconds(self, seconds: int) -> None:
        """Record audio output volume."""
        self.audio_seconds_generated_total.inc(seconds)

    def record_quota_denial(self, resource: str) -> None:
        """Record a quota gate denial."""
        self.quota_denials_total.labels(resource=resource).inc()

    def record_ledger_failure(self, action_type: str) -> None:
        """Record a dropped ledger event."""
        self.ledger_append_failures_total.labels(action_type=action_type).inc()

    def record_error(self, error_type: str, operation: str) -> None:
        """Record error occurrence."""
        self.errors_total.labels(error_type=error_type, operation=operation).inc()


# Global metrics instance
metrics = WriteAIMetrics()


# Label used for requests that matched no route (404s, scanners)
UNMATCHED_ENDPOINT = "unmatched"


class track_http_request:
    """
    Track one HTTP request.

    The endpoint label is the matched route template ("/v1/projects/{project_id}")
    rather than the raw path, so per-project URLs do not create new series.

    Usage:
        with track_http_request("POST") as tracker:
            response = await call_next(request)
            tracker.set_endpoint(route_template)
            tracker.set_status_code(response.status_code)
    """

    def __init__(self, method: str) -> None:
        self.method = method
        self.endpoint = UNMATCHED_ENDPOINT
        self.status_code = 200
        self.start_time: float = 0.0

    def set_endpoint(self, endpoint: str | None) -> None:
        self.endpoint = endpoint or UNMATCHED_ENDPOINT

    def set_status_code(self, status_code: int) -> None:
        self.status_code = status_code

    def __enter__(self) -> "track_http_request":
        self.start_time = time.perf_counter()
        metrics.http_requests_in_progress.labels(method=self.method).inc()
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        duration = time.perf_counter() - self.start_time
        if exc_type is not None:
            self.status_code = 500
        metrics.record_http_request(self.endpoint, self.method, self.status_code, duration)
        metrics.http_requests_in_progress.labels(method=self.method).dec()


def render_metrics() -> bytes:
    """Render the default registry in Prometheus text format."""
    return generate_latest(REGISTRY)
