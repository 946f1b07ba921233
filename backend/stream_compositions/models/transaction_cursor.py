"""Transaction cursor model."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stream_compositions.models._base import Base


class TransactionCursorStatus(str, Enum):
    """Ingestion state of an arrangement's transactions.

    Stored as its raw value in the ``status`` column.
    """

    IN_PROGRESS = "IN_PROGRESS"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class TransactionCursor(Base):
    """Bookmark of transaction ingestion progress for one arrangement.

    ``last_txn_ids`` holds the comma-joined ids of the last processed batch and
    ``additions`` holds a JSON object; the mapper converts both to their wire shapes.
    """

    __tablename__ = "txn_cursor"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    arrangement_id: Mapped[str] = mapped_column(String(36), nullable=False)
    ext_arrangement_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    legal_entity_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    last_txn_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    last_txn_ids: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    additions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("arrangement_id", name="uq_txn_cursor_arrangement_id"),
    )
