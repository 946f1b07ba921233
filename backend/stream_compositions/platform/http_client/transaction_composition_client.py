"""Client for the transaction composition service."""

from typing import Optional

import httpx

from stream_compositions import schemas
from stream_compositions.core.logging import ContextualLogger
from stream_compositions.core.logging import logger as default_logger

PULL_TRANSACTIONS_PATH = "/service-api/v2/ingest/pull"


class TransactionCompositionClient:
    """Calls the transaction composition service over HTTP.

    Wraps an ``httpx.AsyncClient`` bound to the service's base URL. Timeouts
    come from the wrapped client; there are no retries.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the client.

        Args:
            client: HTTP client with ``base_url`` set to the transaction composition service
            logger: Optional contextual logger
        """
        self._client = client
        self._logger = logger or default_logger.with_context(
            component="transaction_composition_client"
        )

    @classmethod
    def from_base_url(cls, base_url: str, timeout: float) -> "TransactionCompositionClient":
        """Build a client owning its own ``httpx.AsyncClient``."""
        return cls(httpx.AsyncClient(base_url=base_url, timeout=timeout))

    async def pull_transactions(
        self, request: schemas.TransactionPullIngestionRequest
    ) -> schemas.TransactionIngestionResponse:
        """Ask the service to pull the transactions of one arrangement.

        Args:
            request: Arrangement and legal entity to pull transactions for

        Returns:
            The ingested transactions

        Raises:
            httpx.HTTPError: If the call fails or returns an error status
        """
        self._logger.debug(f"Pulling transactions for arrangement {request.arrangement_id}")
        response = await self._client.post(
            PULL_TRANSACTIONS_PATH,
            json=request.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        response.raise_for_status()
        return schemas.TransactionIngestionResponse.model_validate(response.json())

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
