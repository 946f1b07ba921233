"""Transaction cursor API endpoints."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from stream_compositions import schemas
from stream_compositions.api import deps
from stream_compositions.core.transaction_cursor_service import TransactionCursorService
from stream_compositions.db.session import get_db

router = APIRouter()


@router.delete("/delete", status_code=status.HTTP_200_OK, response_class=Response)
async def delete_cursor(
    *,
    request: schemas.TransactionCursorDeleteRequest,
    db: AsyncSession = Depends(get_db),
    service: TransactionCursorService = Depends(deps.get_transaction_cursor_service),
) -> Response:
    """Delete a cursor by id and arrangement id.

    Deleting a cursor that does not exist succeeds.
    """
    await service.delete(db, request)
    return Response(status_code=status.HTTP_200_OK)


@router.get("/arrangement/{arrangement_id}", response_model=schemas.TransactionCursorResponse)
async def get_by_arrangement_id(
    *,
    arrangement_id: str,
    db: AsyncSession = Depends(get_db),
    service: TransactionCursorService = Depends(deps.get_transaction_cursor_service),
) -> schemas.TransactionCursorResponse:
    """Get the cursor of an arrangement."""
    return await service.get_by_arrangement_id(db, arrangement_id)


@router.patch("/arrangement/{arrangement_id}", response_model=schemas.TransactionCursorResponse)
async def patch_by_arrangement_id(
    *,
    arrangement_id: str,
    request: schemas.TransactionCursorPatchRequest,
    db: AsyncSession = Depends(get_db),
    service: TransactionCursorService = Depends(deps.get_transaction_cursor_service),
) -> schemas.TransactionCursorResponse:
    """Update the status, last transaction date or ids of an arrangement's cursor."""
    return await service.patch_by_arrangement_id(db, arrangement_id, request)


@router.post(
    "/upsert",
    response_model=schemas.TransactionCursorResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upsert_cursor(
    *,
    request: schemas.TransactionCursorUpsertRequest,
    db: AsyncSession = Depends(get_db),
    service: TransactionCursorService = Depends(deps.get_transaction_cursor_service),
) -> schemas.TransactionCursorResponse:
    """Create the arrangement's cursor, or replace it if one exists."""
    return await service.upsert(db, request)


@router.get("/{id}", response_model=schemas.TransactionCursorResponse)
async def get_by_id(
    *,
    id: str,
    db: AsyncSession = Depends(get_db),
    service: TransactionCursorService = Depends(deps.get_transaction_cursor_service),
) -> schemas.TransactionCursorResponse:
    """Get a cursor by id."""
    return await service.get_by_id(db, id)
