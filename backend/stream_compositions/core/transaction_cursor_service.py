"""Service for reading and writing transaction cursors."""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from stream_compositions import schemas
from stream_compositions.core.exceptions import NotFoundException
from stream_compositions.core.logging import ContextualLogger, logger
from stream_compositions.core.transaction_cursor_mapper import TransactionCursorMapper
from stream_compositions.crud.crud_transaction_cursor import CRUDTransactionCursor


class TransactionCursorService:
    """Composes the cursor repository and mapper behind the HTTP surface.

    Status transitions are decided by the caller; the service only stores them.
    """

    def __init__(
        self,
        repository: CRUDTransactionCursor,
        mapper: TransactionCursorMapper,
        logger: ContextualLogger = logger,
    ):
        """Initialize the service with its collaborators.

        Args:
            repository: Cursor storage
            mapper: Entity/wire conversion
            logger: Logger for cursor operations
        """
        self.repository = repository
        self.mapper = mapper
        self.logger = logger.with_context(component="transaction_cursor")

    async def get_by_id(self, db: AsyncSession, id: str) -> schemas.TransactionCursorResponse:
        """Get a cursor by id.

        Raises:
            NotFoundException: If no cursor has this id
        """
        self.logger.debug(f"Looking up cursor {id}")
        db_obj = await self.repository.get(db, id=id)
        if db_obj is None:
            raise NotFoundException(f"Transaction cursor {id} not found")
        return self.mapper.entity_to_response(db_obj)

    async def get_by_arrangement_id(
        self, db: AsyncSession, arrangement_id: str
    ) -> schemas.TransactionCursorResponse:
        """Get the cursor of an arrangement.

        Raises:
            NotFoundException: If the arrangement has no cursor
        """
        self.logger.debug(f"Looking up cursor for arrangement {arrangement_id}")
        db_obj = await self.repository.get_by_arrangement_id(db, arrangement_id=arrangement_id)
        if db_obj is None:
            raise NotFoundException(f"No transaction cursor for arrangement {arrangement_id}")
        return self.mapper.entity_to_response(db_obj)

    async def upsert(
        self, db: AsyncSession, request: schemas.TransactionCursorUpsertRequest
    ) -> schemas.TransactionCursorResponse:
        """Create the arrangement's cursor or replace its fields."""
        entity = self.mapper.request_to_entity(request)
        db_obj = await self.repository.upsert(db, obj_in=entity)
        self.logger.with_context(
            arrangement_id=db_obj.arrangement_id, cursor_id=db_obj.id
        ).info(f"Upserted transaction cursor with status {db_obj.status}")
        return self.mapper.entity_to_response(db_obj)

    async def patch_by_arrangement_id(
        self,
        db: AsyncSession,
        arrangement_id: str,
        request: schemas.TransactionCursorPatchRequest,
    ) -> schemas.TransactionCursorResponse:
        """Update the status, last transaction date or ids of an arrangement's cursor.

        Raises:
            NotFoundException: If the arrangement has no cursor
        """
        supplied = request.model_fields_set
        fields: Dict[str, Any] = {}
        if "status" in supplied:
            fields["status"] = request.status
        if "last_txn_date" in supplied:
            fields["last_txn_date"] = self.mapper.text_to_date(request.last_txn_date)
        if "last_txn_ids" in supplied:
            fields["last_txn_ids"] = self.mapper.ids_to_text(request.last_txn_ids)

        db_obj = await self.repository.patch_by_arrangement_id(db, arrangement_id, fields)
        self.logger.with_context(arrangement_id=arrangement_id).info(
            f"Patched transaction cursor fields: {', '.join(sorted(fields)) or 'none'}"
        )
        return self.mapper.entity_to_response(db_obj)

    async def delete(self, db: AsyncSession, request: schemas.TransactionCursorDeleteRequest) -> None:
        """Delete a cursor by id and arrangement id. Missing cursors are ignored."""
        deleted = await self.repository.remove(
            db, id=request.id, arrangement_id=request.arrangement_id
        )
        cursor_logger = self.logger.with_context(
            arrangement_id=request.arrangement_id, cursor_id=request.id
        )
        if deleted:
            cursor_logger.info("Deleted transaction cursor")
        else:
            cursor_logger.debug("No transaction cursor to delete")
