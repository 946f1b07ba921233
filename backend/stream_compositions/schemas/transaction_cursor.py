"""Wire schemas for the transaction cursor API.

Field names are camelCase on the wire and snake_case in Python.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stream_compositions.models.transaction_cursor import TransactionCursorStatus

LAST_TXN_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class TransactionCursor(BaseModel):
    """Cursor as exchanged with API clients."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(
        None, max_length=36, description="Cursor id, assigned on first upsert if absent"
    )
    arrangement_id: str = Field(..., max_length=36, alias="arrangementId")
    ext_arrangement_id: Optional[str] = Field(None, max_length=50, alias="extArrangementId")
    legal_entity_id: Optional[str] = Field(None, max_length=36, alias="legalEntityId")
    last_txn_date: Optional[str] = Field(
        None, alias="lastTxnDate", description="Formatted as yyyy-MM-dd HH:mm:ss"
    )
    status: Optional[TransactionCursorStatus] = None
    last_txn_ids: List[str] = Field(default_factory=list, alias="lastTxnIds")
    additions: Optional[Dict[str, Optional[str]]] = None


class TransactionCursorUpsertRequest(BaseModel):
    """Request body for ``POST /cursor/upsert``."""

    cursor: TransactionCursor


class TransactionCursorResponse(BaseModel):
    """Response body wrapping a single cursor."""

    cursor: TransactionCursor


class TransactionCursorPatchRequest(BaseModel):
    """Request body for ``PATCH /cursor/arrangement/{arrangementId}``.

    Only the supplied fields are written.
    """

    model_config = ConfigDict(populate_by_name=True)

    last_txn_date: Optional[str] = Field(None, alias="lastTxnDate")
    status: Optional[TransactionCursorStatus] = None
    last_txn_ids: Optional[List[str]] = Field(None, alias="lastTxnIds")

    @field_validator("last_txn_ids", mode="before")
    @classmethod
    def split_joined_ids(cls, v):
        """Callers send the ids either as a list or already comma-joined."""
        if isinstance(v, str):
            return v.split(",") if v else []
        return v


class TransactionCursorDeleteRequest(BaseModel):
    """Request body for ``DELETE /cursor/delete``."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., max_length=36)
    arrangement_id: str = Field(..., max_length=36, alias="arrangementId")
