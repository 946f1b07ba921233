"""CRUD singletons for the stream compositions backend."""

from .crud_transaction_cursor import CRUDTransactionCursor, transaction_cursor

__all__ = ["CRUDTransactionCursor", "transaction_cursor"]
