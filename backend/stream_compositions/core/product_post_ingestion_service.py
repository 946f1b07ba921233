"""Post-ingestion processing of product ingestions.

After a product ingestion completes, the ingested products can be chained into
the transaction composition service (one pull request per product, either
awaited or fire-and-forget) before a completed event is published. A failed
ingestion publishes a failed event instead.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Set, Tuple

from stream_compositions import schemas
from stream_compositions.core.config import Settings
from stream_compositions.core.exceptions import IntegrationException
from stream_compositions.core.logging import ContextualLogger
from stream_compositions.core.logging import logger as default_logger
from stream_compositions.events.bus import EventBus
from stream_compositions.events.constants.event_types import EventType
from stream_compositions.platform.http_client.transaction_composition_client import (
    TransactionCompositionClient,
)
from stream_compositions.platform.metrics.prometheus_metrics import (
    events_emitted_total,
    transaction_pull_duration_seconds,
    transaction_pull_requests_total,
)


class TransactionChainMode(str, Enum):
    """How the transaction chain runs after a product ingestion."""

    DISABLED = "disabled"
    SYNC = "sync"
    ASYNC = "async"


@dataclass(frozen=True)
class ProductChainConfig:
    """Chain and event switches of the product composition."""

    transaction_chain_enabled: bool = False
    transaction_chain_async: bool = False
    exclude_product_type_external_ids: Tuple[str, ...] = ()
    completed_event_enabled: bool = True
    failed_event_enabled: bool = True

    @property
    def transaction_chain_mode(self) -> TransactionChainMode:
        """Resolve the enabled/async flags into a single mode."""
        if not self.transaction_chain_enabled:
            return TransactionChainMode.DISABLED
        if self.transaction_chain_async:
            return TransactionChainMode.ASYNC
        return TransactionChainMode.SYNC

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProductChainConfig":
        """Build the config from application settings."""
        return cls(
            transaction_chain_enabled=settings.TRANSACTION_CHAIN_ENABLED,
            transaction_chain_async=settings.TRANSACTION_CHAIN_ASYNC,
            exclude_product_type_external_ids=tuple(
                settings.TRANSACTION_CHAIN_EXCLUDE_PRODUCT_TYPE_EXTERNAL_IDS
            ),
            completed_event_enabled=settings.EVENTS_ENABLE_COMPLETED,
            failed_event_enabled=settings.EVENTS_ENABLE_FAILED,
        )


def to_event_product_group(group: schemas.ProductGroup) -> schemas.EventProductGroup:
    """Map an ingested product group to its event shape."""

    def products(items: Optional[List[schemas.BaseProduct]]) -> List[schemas.EventProduct]:
        return [
            schemas.EventProduct(
                internal_id=product.internal_id,
                external_id=product.external_id,
                product_type_external_id=product.product_type_external_id,
                name=product.name,
            )
            for product in items or []
        ]

    return schemas.EventProductGroup(
        name=group.name,
        description=group.description,
        loans=products(group.loans),
        term_deposits=products(group.term_deposits),
        current_accounts=products(group.current_accounts),
        savings_accounts=products(group.savings_accounts),
        credit_cards=products(group.credit_cards),
        investment_accounts=products(group.investment_accounts),
        custom_products=products(group.custom_products),
    )


class ProductPostIngestionService:
    """Runs the transaction chain and publishes the outcome of a product ingestion."""

    def __init__(
        self,
        event_bus: EventBus,
        config: ProductChainConfig,
        transaction_client: TransactionCompositionClient,
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the service.

        Args:
            event_bus: Bus that completed and failed events are published to
            config: Chain and event switches
            transaction_client: Client of the transaction composition service
            logger: Optional contextual logger
        """
        self.event_bus = event_bus
        self.config = config
        self.transaction_client = transaction_client
        self.logger = logger or default_logger.with_context(component="product_post_ingestion")
        self._background_tasks: Set[asyncio.Task] = set()

    async def handle_success(
        self, res: schemas.ProductIngestResponse
    ) -> schemas.ProductIngestResponse:
        """Process a completed product ingestion.

        Runs the transaction chain according to the configured mode, then
        publishes a completed event. If the chain fails, a failed event is
        published instead and the error is re-raised.

        Raises:
            IntegrationException: If a synchronous transaction pull fails
        """
        self.logger.info(
            "Product ingestion completed successfully for SA "
            f"{res.service_agreement_internal_id}"
        )
        try:
            await self._process_chains(res)
        except IntegrationException as e:
            self.handle_failure(e)
            raise

        self._emit_completed_event(res)
        self.logger.debug(f"Ingested product groups: {res.product_groups}")
        return res

    def handle_failure(self, error: BaseException) -> None:
        """Publish a failed event for an ingestion that raised ``error``."""
        message = str(error)
        self.logger.error(f"Product ingestion failed. {message}")
        if not self.config.failed_event_enabled:
            return
        self._emit(EventType.PRODUCT_FAILED, schemas.ProductFailedEvent(message=message))

    def extract_products(
        self, product_groups: Optional[Iterable[schemas.ProductGroup]]
    ) -> List[schemas.BaseProduct]:
        """Collect the products to chain, in group order, one per external id.

        Products are visited kind by kind across all groups (all loans first,
        then all term deposits, ...). The first product seen for an external id
        wins; products whose type is excluded are dropped afterwards.
        """
        if not product_groups:
            return []
        seen: Set[str] = set()
        products: List[schemas.BaseProduct] = []
        for lists_of_kind in zip(*(group.product_lists() for group in product_groups)):
            for product_list in lists_of_kind:
                for product in product_list or []:
                    if product.external_id in seen:
                        continue
                    seen.add(product.external_id)
                    products.append(product)

        excluded = self.config.exclude_product_type_external_ids
        if not excluded:
            return products
        return [p for p in products if p.product_type_external_id not in excluded]

    @staticmethod
    def build_transaction_pull_request(
        product: schemas.BaseProduct, res: schemas.ProductIngestResponse
    ) -> schemas.TransactionPullIngestionRequest:
        """Build the pull request for one product's arrangement."""
        return schemas.TransactionPullIngestionRequest(
            legal_entity_internal_id=product.legal_entities[0].internal_id,
            arrangement_id=product.internal_id,
            external_arrangement_id=product.external_id,
            additions=res.additions,
        )

    async def _process_chains(self, res: schemas.ProductIngestResponse) -> None:
        mode = self.config.transaction_chain_mode
        if mode is TransactionChainMode.DISABLED:
            self.logger.debug("Transaction Chain is disabled")
            return

        requests = self._build_requests(res)
        if mode is TransactionChainMode.ASYNC:
            self._ingest_transactions_async(requests)
        else:
            await self._ingest_transactions(requests)

    def _build_requests(
        self, res: schemas.ProductIngestResponse
    ) -> List[schemas.TransactionPullIngestionRequest]:
        requests = []
        for product in self.extract_products(res.product_groups):
            if not product.legal_entities:
                self.logger.warning(
                    f"Skipping transaction chain for product {product.external_id}: "
                    "no legal entity"
                )
                continue
            requests.append(self.build_transaction_pull_request(product, res))
        return requests

    async def _ingest_transactions(
        self, requests: List[schemas.TransactionPullIngestionRequest]
    ) -> List[schemas.TransactionIngestionResponse]:
        start = time.perf_counter()
        tasks = [asyncio.create_task(self._pull(request)) for request in requests]
        try:
            responses = await asyncio.gather(*tasks)
        except IntegrationException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        transaction_pull_duration_seconds.observe(time.perf_counter() - start)
        for response in responses:
            self.logger.debug(
                f"Response from Transaction Composition: {response.transactions}"
            )
        return list(responses)

    async def _pull(
        self, request: schemas.TransactionPullIngestionRequest
    ) -> schemas.TransactionIngestionResponse:
        try:
            response = await self.transaction_client.pull_transactions(request)
        except Exception as e:
            transaction_pull_requests_total.labels(mode="sync", outcome="error").inc()
            self.logger.with_context(arrangement_id=request.arrangement_id).error(
                f"Error while calling Transaction Composition: {e}"
            )
            raise IntegrationException(str(e)) from e
        transaction_pull_requests_total.labels(mode="sync", outcome="success").inc()
        return response

    def _ingest_transactions_async(
        self, requests: List[schemas.TransactionPullIngestionRequest]
    ) -> None:
        for request in requests:
            task = asyncio.create_task(self._pull_in_background(request))
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)
            self.logger.info(
                f"Async transaction ingestion called for arrangement: {request.arrangement_id}"
            )

    async def _pull_in_background(self, request: schemas.TransactionPullIngestionRequest) -> None:
        try:
            await self.transaction_client.pull_transactions(request)
        except Exception as e:
            transaction_pull_requests_total.labels(mode="async", outcome="error").inc()
            self.logger.with_context(arrangement_id=request.arrangement_id).error(
                f"Async transaction ingestion failed: {e}"
            )
            return
        transaction_pull_requests_total.labels(mode="async", outcome="success").inc()

    def _emit_completed_event(self, res: schemas.ProductIngestResponse) -> None:
        if not self.config.completed_event_enabled or res.product_groups is None:
            return
        event = schemas.ProductCompletedEvent(
            product_groups=[to_event_product_group(group) for group in res.product_groups]
        )
        self._emit(EventType.PRODUCT_COMPLETED, event)

    def _emit(self, event_type: EventType, event) -> None:
        self.event_bus.emit_event(schemas.EnvelopedEvent(event_type=event_type.value, event=event))
        events_emitted_total.labels(event_type=event_type.value).inc()
        self.logger.info(f"Emitted {event_type.value} event")

    async def drain(self) -> None:
        """Wait for fire-and-forget transaction pulls still in flight."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
