"""Models for the stream compositions backend."""

from .transaction_cursor import TransactionCursor, TransactionCursorStatus

__all__ = ["TransactionCursor", "TransactionCursorStatus"]
