"""
Relay metrics.

Prometheus counters for what happened to each inbound event, exposed on
``/metrics``. Each app instance owns its registry so several apps (tests,
workers) can live in one process.
"""

from typing import Optional
from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    CONTENT_TYPE_LATEST,
    generate_latest,
)


class RelayMetrics:
    """
    Metrics collector for the gateway.

    Integrates with Prometheus for monitoring.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Initialize metrics collector.

        Args:
            registry: Registry to register on (a fresh one by default)
        """
        self.registry = registry or CollectorRegistry()

        self.events_received = Counter(
            'whgateway_events_received_total',
            'Webhook POST requests received',
            registry=self.registry
        )

        self.changes = Counter(
            'whgateway_changes_total',
            'Envelope changes by relay outcome',
            ['outcome'],
            registry=self.registry
        )

        self.verifications = Counter(
            'whgateway_verifications_total',
            'Subscription verification attempts',
            ['result'],
            registry=self.registry
        )

        self.forward_duration = Histogram(
            'whgateway_forward_duration_seconds',
            'Token fetch plus forward duration',
            registry=self.registry
        )

    def record_event(self):
        """Record an inbound webhook POST."""
        self.events_received.inc()

    def record_change(self, outcome: str, count: int = 1):
        """Record ``count`` changes with the given outcome."""
        if count:
            self.changes.labels(outcome=outcome).inc(count)

    def record_verification(self, accepted: bool):
        """Record a verification handshake result."""
        self.verifications.labels(
            result="accepted" if accepted else "rejected"
        ).inc()

    def observe_forward(self, duration: float):
        """Observe the duration of one forward attempt."""
        self.forward_duration.observe(duration)

    def get_value(self, name: str, **labels) -> float:
        """Read a sample value from the registry (0.0 if never recorded)."""
        value = self.registry.get_sample_value(name, labels or None)
        return value or 0.0

    def render(self) -> bytes:
        """Render the registry in Prometheus text format."""
        return generate_latest(self.registry)

    content_type = CONTENT_TYPE_LATEST
