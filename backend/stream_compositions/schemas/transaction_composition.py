"""Schemas for the downstream transaction composition API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TransactionPullIngestionRequest(BaseModel):
    """Ask the transaction composition service to pull one arrangement's transactions."""

    model_config = ConfigDict(populate_by_name=True)

    legal_entity_internal_id: Optional[str] = Field(None, alias="legalEntityInternalId")
    arrangement_id: Optional[str] = Field(None, alias="arrangementId")
    external_arrangement_id: Optional[str] = Field(None, alias="externalArrangementId")
    additions: Optional[Dict[str, str]] = None


class TransactionIngestionResponse(BaseModel):
    """Transactions ingested for one arrangement."""

    transactions: List[Dict[str, Any]] = Field(default_factory=list)
