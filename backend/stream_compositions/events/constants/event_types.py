"""Event types published by the product composition."""

from enum import Enum


class EventType(str, Enum):
    """Enumeration of product ingestion event types."""

    PRODUCT_COMPLETED = "product.completed"
    PRODUCT_FAILED = "product.failed"
