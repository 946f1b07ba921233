"""Event payloads published after a product ingestion."""

from datetime import datetime, timezone
from typing import List, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class EventProduct(BaseModel):
    """Product as carried in events."""

    model_config = ConfigDict(populate_by_name=True)

    internal_id: Optional[str] = Field(None, alias="internalId")
    external_id: str = Field(..., alias="externalId")
    product_type_external_id: Optional[str] = Field(None, alias="productTypeExternalId")
    name: Optional[str] = None


class EventProductGroup(BaseModel):
    """Product group as carried in ``ProductCompletedEvent``."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    loans: List[EventProduct] = Field(default_factory=list)
    term_deposits: List[EventProduct] = Field(default_factory=list, alias="termDeposits")
    current_accounts: List[EventProduct] = Field(default_factory=list, alias="currentAccounts")
    savings_accounts: List[EventProduct] = Field(default_factory=list, alias="savingAccounts")
    credit_cards: List[EventProduct] = Field(default_factory=list, alias="creditCards")
    investment_accounts: List[EventProduct] = Field(
        default_factory=list, alias="investmentAccounts"
    )
    custom_products: List[EventProduct] = Field(default_factory=list, alias="customProducts")


class ProductCompletedEvent(BaseModel):
    """Emitted once a product ingestion and its chains finished."""

    model_config = ConfigDict(populate_by_name=True)

    product_groups: List[EventProductGroup] = Field(default_factory=list, alias="productGroups")


class ProductFailedEvent(BaseModel):
    """Emitted when a product ingestion failed."""

    message: Optional[str] = None


class EnvelopedEvent(BaseModel):
    """Transport envelope around a domain event."""

    model_config = ConfigDict(populate_by_name=True)

    event_id: str = Field(default_factory=lambda: str(uuid4()), alias="eventId")
    event_type: str = Field(..., alias="eventType")
    occurred_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="occurredAt"
    )
    event: Union[ProductCompletedEvent, ProductFailedEvent]
