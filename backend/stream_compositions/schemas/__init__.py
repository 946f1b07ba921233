"""Schemas for the stream compositions backend."""

from .events import (
    EnvelopedEvent,
    EventProduct,
    EventProductGroup,
    ProductCompletedEvent,
    ProductFailedEvent,
)
from .product import BaseProduct, LegalEntityReference, ProductGroup, ProductIngestResponse
from .transaction_composition import TransactionIngestionResponse, TransactionPullIngestionRequest
from .transaction_cursor import (
    TransactionCursor,
    TransactionCursorDeleteRequest,
    TransactionCursorPatchRequest,
    TransactionCursorResponse,
    TransactionCursorUpsertRequest,
)

__all__ = [
    "BaseProduct",
    "EnvelopedEvent",
    "EventProduct",
    "EventProductGroup",
    "LegalEntityReference",
    "ProductCompletedEvent",
    "ProductFailedEvent",
    "ProductGroup",
    "ProductIngestResponse",
    "TransactionCursor",
    "TransactionCursorDeleteRequest",
    "TransactionCursorPatchRequest",
    "TransactionCursorResponse",
    "TransactionCursorUpsertRequest",
    "TransactionIngestionResponse",
    "TransactionPullIngestionRequest",
]
