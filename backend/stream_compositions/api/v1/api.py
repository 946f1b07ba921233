"""API routes of the stream compositions backend."""

from fastapi import APIRouter

from stream_compositions.api.v1.endpoints import transaction_cursor

api_router = APIRouter()
api_router.include_router(
    transaction_cursor.router, prefix="/service-api/v2/cursor", tags=["transaction-cursor"]
)
