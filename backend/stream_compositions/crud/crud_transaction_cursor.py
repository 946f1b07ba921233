"""CRUD operations for transaction cursors.

Rows are keyed by ``id`` and by the unique ``arrangement_id``. Upsert relies on
the database's ``ON CONFLICT`` handling so that concurrent upserts for one
arrangement never leave a partial row behind; the last write wins.
"""

from typing import Any, Dict, Mapping, Optional
from uuid import uuid4

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stream_compositions.core.exceptions import ConflictException, NotFoundException
from stream_compositions.models.transaction_cursor import (
    TransactionCursor,
    TransactionCursorStatus,
)

# Columns an upsert overwrites on an existing row. ``id`` is never reassigned.
MUTABLE_COLUMNS = (
    "ext_arrangement_id",
    "legal_entity_id",
    "last_txn_date",
    "status",
    "last_txn_ids",
    "additions",
)

PATCHABLE_COLUMNS = ("status", "last_txn_date", "last_txn_ids")


def _dialect_insert(db: AsyncSession):
    """Return the ``insert`` construct supporting ON CONFLICT for the bound dialect."""
    if db.get_bind().dialect.name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        from sqlalchemy.dialects.postgresql import insert
    return insert


def _status_to_text(status: Any) -> Optional[str]:
    if isinstance(status, TransactionCursorStatus):
        return status.value
    return status


class CRUDTransactionCursor:
    """CRUD operations for transaction cursors."""

    def __init__(self):
        """Initialize the CRUD object."""
        self.model = TransactionCursor

    async def get(self, db: AsyncSession, id: str) -> Optional[TransactionCursor]:
        """Get a cursor by its id.

        Args:
            db: Database session
            id: Cursor id

        Returns:
            TransactionCursor if found, None otherwise
        """
        result = await db.execute(
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_arrangement_id(
        self, db: AsyncSession, arrangement_id: str
    ) -> Optional[TransactionCursor]:
        """Get the cursor of an arrangement.

        Args:
            db: Database session
            arrangement_id: Internal arrangement id

        Returns:
            TransactionCursor if found, None otherwise
        """
        result = await db.execute(
            select(self.model)
            .where(self.model.arrangement_id == arrangement_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def upsert(self, db: AsyncSession, *, obj_in: TransactionCursor) -> TransactionCursor:
        """Insert a cursor, or replace the mutable fields of the arrangement's existing cursor.

        Args:
            db: Database session
            obj_in: Unsaved cursor carrying the values to write

        Returns:
            The persisted cursor

        Raises:
            ConflictException: If the supplied id is already used by another arrangement's cursor
        """
        values = {
            "id": obj_in.id or str(uuid4()),
            "arrangement_id": obj_in.arrangement_id,
        }
        for column in MUTABLE_COLUMNS:
            values[column] = getattr(obj_in, column)
        values["status"] = _status_to_text(values["status"])

        insert = _dialect_insert(db)
        stmt = insert(self.model).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.model.arrangement_id],
            set_={
                **{column: stmt.excluded[column] for column in MUTABLE_COLUMNS},
                "modified_at": func.now(),
            },
        )
        try:
            await db.execute(stmt)
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise ConflictException(
                f"Cursor id {values['id']} already belongs to another arrangement"
            ) from e

        return await self.get_by_arrangement_id(db, arrangement_id=obj_in.arrangement_id)

    async def patch_by_arrangement_id(
        self,
        db: AsyncSession,
        arrangement_id: str,
        fields: Mapping[str, Any],
    ) -> TransactionCursor:
        """Update only the supplied fields of an arrangement's cursor.

        Args:
            db: Database session
            arrangement_id: Internal arrangement id
            fields: Column values keyed by column name; only status, last_txn_date
                and last_txn_ids are accepted

        Returns:
            The updated cursor

        Raises:
            NotFoundException: If the arrangement has no cursor
            ValueError: If a column outside the patchable set is supplied
        """
        unknown = set(fields) - set(PATCHABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Cannot patch cursor columns: {', '.join(sorted(unknown))}")

        values: Dict[str, Any] = dict(fields)
        if "status" in values:
            values["status"] = _status_to_text(values["status"])

        if values:
            result = await db.execute(
                update(self.model)
                .where(self.model.arrangement_id == arrangement_id)
                .values(**values, modified_at=func.now())
            )
            if result.rowcount == 0:
                await db.rollback()
                raise NotFoundException(f"No cursor found for arrangement {arrangement_id}")
            await db.commit()

        db_obj = await self.get_by_arrangement_id(db, arrangement_id=arrangement_id)
        if db_obj is None:
            raise NotFoundException(f"No cursor found for arrangement {arrangement_id}")
        return db_obj

    async def remove(self, db: AsyncSession, *, id: str, arrangement_id: str) -> bool:
        """Delete the cursor matching both id and arrangement id.

        Deleting a pair that does not exist is a no-op.

        Args:
            db: Database session
            id: Cursor id
            arrangement_id: Internal arrangement id

        Returns:
            True if a row was deleted, False otherwise
        """
        result = await db.execute(
            delete(self.model).where(
                and_(
                    self.model.id == id,
                    self.model.arrangement_id == arrangement_id,
                )
            )
        )
        await db.commit()
        return result.rowcount > 0


# Singleton instance
transaction_cursor = CRUDTransactionCursor()
