"""Prometheus counters for the webhook relay.

All counters grow for the lifetime of the process and are exposed in the
Prometheus text format at ``/metrics``:

- jira_webhooks_processed_total: events that produced a chat message
- jira_unknown_webhooks_received_total: events of an unrecognised type
- jira_webhooks_processed_per_project_total: events dispatched, per project
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    generate_latest,
)


class NotifierMetrics:
    """Container for the relay's Prometheus metrics.

    Pass a fresh ``CollectorRegistry`` to get isolated counters, e.g. in tests.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or REGISTRY

        self.webhooks_processed = Counter(
            "jira_webhooks_processed",
            "The total number of processed JIRA webhook events since application start",
            registry=self.registry,
        )
        self.unknown_webhooks_received = Counter(
            "jira_unknown_webhooks_received",
            "The total number of unknown JIRA webhook events received since application start",
            registry=self.registry,
        )
        self.webhooks_processed_per_project = Counter(
            "jira_webhooks_processed_per_project",
            "The total number of processed JIRA webhook events since application start per JIRA project",
            labelnames=["project"],
            registry=self.registry,
        )

    def record_processed(self) -> None:
        self.webhooks_processed.inc()

    def record_unknown(self) -> None:
        self.unknown_webhooks_received.inc()

    def record_project(self, project: str) -> None:
        self.webhooks_processed_per_project.labels(project=project).inc()

    def render(self) -> bytes:
        """Return all metrics of the registry in the text exposition format."""
        return generate_latest(self.registry)
