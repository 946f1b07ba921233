"""Prometheus metrics for the post-ingestion chains."""

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

# Registry for stream composition metrics, exposed on /metrics
composition_registry = CollectorRegistry()

# Elapsed time of a synchronous transaction chain batch
transaction_pull_duration_seconds = Histogram(
    "ingestion_process_pull_user_transactions_seconds",
    "Time spent pulling transactions for all products of one ingestion",
    registry=composition_registry,
)

# Transaction pull requests sent downstream, by mode and outcome
transaction_pull_requests_total = Counter(
    "ingestion_transaction_pull_requests_total",
    "Transaction pull requests sent to the transaction composition service",
    ["mode", "outcome"],
    registry=composition_registry,
)

# Events handed to the event bus
events_emitted_total = Counter(
    "ingestion_events_emitted_total",
    "Product ingestion events handed to the event bus",
    ["event_type"],
    registry=composition_registry,
)


def get_prometheus_metrics() -> bytes:
    """Render the composition metrics in the Prometheus text format."""
    return generate_latest(composition_registry)
