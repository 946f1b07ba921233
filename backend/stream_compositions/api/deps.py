"""Dependencies that are used in the API endpoints."""

from stream_compositions import crud
from stream_compositions.core.transaction_cursor_mapper import TransactionCursorMapper
from stream_compositions.core.transaction_cursor_service import TransactionCursorService

transaction_cursor_service = TransactionCursorService(
    repository=crud.transaction_cursor,
    mapper=TransactionCursorMapper(),
)


def get_transaction_cursor_service() -> TransactionCursorService:
    """Return the transaction cursor service."""
    return transaction_cursor_service
