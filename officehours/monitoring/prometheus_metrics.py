"""
Prometheus metrics module for the office-hours platform.

Exposes service operation timings recorded by ``@measure_operation`` plus
domain counters for booking conflicts, the mentor calendar mutex and sync
outbox deliveries. Everything lives in a dedicated registry.
"""

from threading import Lock
from time import monotonic
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Dedicated registry, separate from the process default
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "officehours_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "officehours_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "officehours_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

booking_conflicts_total = Counter(
    "officehours_booking_conflicts_total",
    "Calendar writes rejected because of an overlapping interval",
    ["operation"],  # create_booking | reschedule_booking | create_block
    registry=REGISTRY,
)

mentor_lock_total = Counter(
    "officehours_mentor_lock_total",
    "Per-mentor calendar mutex outcomes",
    ["action", "outcome"],
    registry=REGISTRY,
)

sync_outbox_total = Counter(
    "officehours_sync_outbox_total",
    "Sync outbox delivery outcomes",
    ["entity_type", "outcome"],  # completed | retry | failed | skipped
    registry=REGISTRY,
)

sync_outbox_enqueue_errors_total = Counter(
    "officehours_sync_outbox_enqueue_errors_total",
    "Outbox inserts that failed and were swallowed",
    ["entity_type"],
    registry=REGISTRY,
)

sync_dispatch_seconds = Histogram(
    "officehours_sync_dispatch_seconds",
    "External sync call duration in seconds",
    ["entity_type"],
    registry=REGISTRY,
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _cache_lock: Lock = Lock()
    _cache_payload: Optional[bytes] = None
    _cache_ts: Optional[float] = None
    _cache_ttl_seconds: float = 1.0

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingService')
            operation: Operation/method name (e.g., 'create_booking')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_booking_conflict(operation: str) -> None:
        booking_conflicts_total.labels(operation=operation).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_mentor_lock(action: str, outcome: str) -> None:
        mentor_lock_total.labels(action=action, outcome=outcome).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_sync_outcome(entity_type: str, outcome: str) -> None:
        """Record the result of one outbox delivery attempt."""
        sync_outbox_total.labels(entity_type=entity_type, outcome=outcome).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_enqueue_error(entity_type: str) -> None:
        sync_outbox_enqueue_errors_total.labels(entity_type=entity_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def observe_sync_dispatch(entity_type: str, duration: float) -> None:
        sync_dispatch_seconds.labels(entity_type=entity_type).observe(max(duration, 0.0))
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """
        Generate Prometheus metrics in exposition format.

        Returns:
            Metrics data in Prometheus text format
        """
        now = monotonic()
        payload = PrometheusMetrics._cache_payload
        ts = PrometheusMetrics._cache_ts
        if payload is not None and ts is not None and (now - ts) <= PrometheusMetrics._cache_ttl_seconds:
            return payload

        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_payload = cast(bytes, generate_latest(REGISTRY))
            PrometheusMetrics._cache_ts = monotonic()
            return PrometheusMetrics._cache_payload

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _invalidate_cache() -> None:
        """Invalidate cached metrics so next scrape refreshes."""
        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_ts = None
            PrometheusMetrics._cache_payload = None


# Singleton instance
prometheus_metrics = PrometheusMetrics()
