"""HTTP clients for downstream services."""

from stream_compositions.platform.http_client.transaction_composition_client import (
    TransactionCompositionClient,
)

__all__ = ["TransactionCompositionClient"]
