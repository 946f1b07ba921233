"""Tests for the product post-ingestion service."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from stream_compositions import schemas
from stream_compositions.core.config import Settings
from stream_compositions.core.exceptions import IntegrationException
from stream_compositions.core.product_post_ingestion_service import (
    ProductChainConfig,
    ProductPostIngestionService,
    TransactionChainMode,
)
from stream_compositions.events import InMemoryEventBus


def product(external_id, internal_id=None, product_type="current-account", legal_entity="LE-1"):
    legal_entities = [schemas.LegalEntityReference(internal_id=legal_entity)] if legal_entity else []
    return schemas.BaseProduct(
        internal_id=internal_id or f"internal-{external_id}",
        external_id=external_id,
        product_type_external_id=product_type,
        legal_entities=legal_entities,
    )


def ingest_response(*groups, additions=None) -> schemas.ProductIngestResponse:
    return schemas.ProductIngestResponse(
        service_agreement_internal_id="SA-1",
        service_agreement_external_id="sa-ext-1",
        product_groups=list(groups),
        additions=additions,
    )


@pytest.fixture
def event_bus():
    """Create an in-memory event bus."""
    return InMemoryEventBus()


@pytest.fixture
def transaction_client():
    """Mock transaction composition client."""
    client = AsyncMock()
    client.pull_transactions.return_value = schemas.TransactionIngestionResponse(
        transactions=[{"id": "t1"}]
    )
    return client


def make_service(event_bus, transaction_client, **config) -> ProductPostIngestionService:
    return ProductPostIngestionService(
        event_bus=event_bus,
        config=ProductChainConfig(**config),
        transaction_client=transaction_client,
    )


def drain_events(event_bus):
    events = []
    while not event_bus.queue.empty():
        events.append(event_bus.queue.get_nowait())
    return events


class TestProductChainConfig:
    """Tests for resolving the chain mode."""

    def test_modes(self):
        """Test the enabled and async flags."""
        assert ProductChainConfig().transaction_chain_mode is TransactionChainMode.DISABLED
        assert (
            ProductChainConfig(transaction_chain_async=True).transaction_chain_mode
            is TransactionChainMode.DISABLED
        )
        assert (
            ProductChainConfig(transaction_chain_enabled=True).transaction_chain_mode
            is TransactionChainMode.SYNC
        )
        assert (
            ProductChainConfig(
                transaction_chain_enabled=True, transaction_chain_async=True
            ).transaction_chain_mode
            is TransactionChainMode.ASYNC
        )

    def test_from_settings(self):
        """Test building the config from settings with a comma-separated exclude list."""
        settings = Settings(
            TRANSACTION_CHAIN_ENABLED=True,
            TRANSACTION_CHAIN_EXCLUDE_PRODUCT_TYPE_EXTERNAL_IDS="loan,mortgage",
            EVENTS_ENABLE_FAILED=False,
        )

        config = ProductChainConfig.from_settings(settings)

        assert config.transaction_chain_mode is TransactionChainMode.SYNC
        assert config.exclude_product_type_external_ids == ("loan", "mortgage")
        assert config.completed_event_enabled is True
        assert config.failed_event_enabled is False


class TestExtractProducts:
    """Tests for choosing the products to chain."""

    def test_deduplicates_by_external_id(self, event_bus, transaction_client):
        """Test that the first product seen for an external id wins."""
        service = make_service(event_bus, transaction_client)
        group1 = schemas.ProductGroup(current_accounts=[product("p1", internal_id="first")])
        group2 = schemas.ProductGroup(
            current_accounts=[product("p1", internal_id="second"), product("p2")]
        )

        products = service.extract_products([group1, group2])

        assert [p.external_id for p in products] == ["p1", "p2"]
        assert products[0].internal_id == "first"

    def test_visits_kinds_before_groups(self, event_bus, transaction_client):
        """Test that all loans come before any current account, across groups."""
        service = make_service(event_bus, transaction_client)
        group1 = schemas.ProductGroup(
            loans=[product("loan-1")], current_accounts=[product("ca-1")]
        )
        group2 = schemas.ProductGroup(
            loans=[product("loan-2")], custom_products=[product("custom-1")]
        )

        products = service.extract_products([group1, group2])

        assert [p.external_id for p in products] == ["loan-1", "loan-2", "ca-1", "custom-1"]

    def test_excludes_product_types(self, event_bus, transaction_client):
        """Test that products of an excluded type are dropped."""
        service = make_service(
            event_bus, transaction_client, exclude_product_type_external_ids=("credit-card",)
        )
        group = schemas.ProductGroup(
            current_accounts=[product("ca-1")],
            credit_cards=[product("cc-1", product_type="credit-card")],
        )

        products = service.extract_products([group])

        assert [p.external_id for p in products] == ["ca-1"]

    def test_no_groups(self, event_bus, transaction_client):
        """Test that missing or empty groups give no products."""
        service = make_service(event_bus, transaction_client)

        assert service.extract_products(None) == []
        assert service.extract_products([]) == []
        assert service.extract_products([schemas.ProductGroup()]) == []


def test_build_transaction_pull_request():
    """Test that the pull request is built from the product and the ingestion additions."""
    res = ingest_response(additions={"source": "batch"})

    request = ProductPostIngestionService.build_transaction_pull_request(
        product("ext-1", internal_id="arr-1", legal_entity="LE-9"), res
    )

    assert request.legal_entity_internal_id == "LE-9"
    assert request.arrangement_id == "arr-1"
    assert request.external_arrangement_id == "ext-1"
    assert request.additions == {"source": "batch"}


@pytest.mark.asyncio
async def test_chain_disabled_emits_completed_only(event_bus, transaction_client):
    """Test that a disabled chain makes no calls and still publishes a completed event."""
    service = make_service(event_bus, transaction_client)
    res = ingest_response(schemas.ProductGroup(name="group", loans=[product("loan-1")]))

    result = await service.handle_success(res)

    assert result is res
    transaction_client.pull_transactions.assert_not_called()
    events = drain_events(event_bus)
    assert len(events) == 1
    assert events[0].event_type == "product.completed"
    group = events[0].event.product_groups[0]
    assert group.name == "group"
    assert [p.external_id for p in group.loans] == ["loan-1"]


@pytest.mark.asyncio
async def test_sync_chain_pulls_each_product(event_bus, transaction_client):
    """Test that the synchronous chain sends one pull per distinct product."""
    service = make_service(event_bus, transaction_client, transaction_chain_enabled=True)
    res = ingest_response(
        schemas.ProductGroup(current_accounts=[product("p1"), product("p2")]),
        schemas.ProductGroup(current_accounts=[product("p1")]),
    )

    await service.handle_success(res)

    assert transaction_client.pull_transactions.await_count == 2
    arrangement_ids = {
        call.args[0].arrangement_id for call in transaction_client.pull_transactions.await_args_list
    }
    assert arrangement_ids == {"internal-p1", "internal-p2"}
    assert [e.event_type for e in drain_events(event_bus)] == ["product.completed"]


@pytest.mark.asyncio
async def test_sync_chain_skips_products_without_legal_entity(event_bus, transaction_client):
    """Test that products without a legal entity are not pulled."""
    service = make_service(event_bus, transaction_client, transaction_chain_enabled=True)
    res = ingest_response(
        schemas.ProductGroup(current_accounts=[product("p1"), product("p2", legal_entity=None)])
    )

    await service.handle_success(res)

    transaction_client.pull_transactions.assert_awaited_once()
    assert transaction_client.pull_transactions.await_args.args[0].external_arrangement_id == "p1"


@pytest.mark.asyncio
async def test_sync_chain_failure_raises_and_emits_failed(event_bus, transaction_client):
    """Test that a failed pull publishes a failed event and raises IntegrationException."""
    request = httpx.Request("POST", "http://tc/service-api/v2/ingest/pull")
    transaction_client.pull_transactions.side_effect = httpx.HTTPStatusError(
        "Server error '500 Internal Server Error'",
        request=request,
        response=httpx.Response(500, request=request),
    )
    service = make_service(event_bus, transaction_client, transaction_chain_enabled=True)
    res = ingest_response(schemas.ProductGroup(loans=[product("loan-1")]))

    with pytest.raises(IntegrationException) as exc_info:
        await service.handle_success(res)

    assert "500 Internal Server Error" in exc_info.value.message
    events = drain_events(event_bus)
    assert [e.event_type for e in events] == ["product.failed"]
    assert events[0].event.message == exc_info.value.message


@pytest.mark.asyncio
async def test_async_chain_does_not_wait_for_pulls(event_bus, transaction_client):
    """Test that the asynchronous chain returns before the pulls finish."""
    release = asyncio.Event()

    async def slow_pull(request):
        await release.wait()
        return schemas.TransactionIngestionResponse()

    transaction_client.pull_transactions.side_effect = slow_pull
    service = make_service(
        event_bus,
        transaction_client,
        transaction_chain_enabled=True,
        transaction_chain_async=True,
    )
    res = ingest_response(schemas.ProductGroup(loans=[product("loan-1"), product("loan-2")]))

    result = await service.handle_success(res)

    assert result is res
    assert [e.event_type for e in drain_events(event_bus)] == ["product.completed"]
    release.set()
    await service.drain()
    assert transaction_client.pull_transactions.await_count == 2


@pytest.mark.asyncio
async def test_async_chain_failure_is_only_logged(event_bus, transaction_client):
    """Test that a failed background pull does not fail the ingestion."""
    transaction_client.pull_transactions.side_effect = httpx.ConnectError("connection refused")
    service = make_service(
        event_bus,
        transaction_client,
        transaction_chain_enabled=True,
        transaction_chain_async=True,
    )
    res = ingest_response(schemas.ProductGroup(loans=[product("loan-1")]))

    await service.handle_success(res)
    await service.drain()

    assert [e.event_type for e in drain_events(event_bus)] == ["product.completed"]


@pytest.mark.asyncio
async def test_completed_event_skipped_without_product_groups(event_bus, transaction_client):
    """Test that no completed event is published when there are no product groups."""
    service = make_service(event_bus, transaction_client)
    res = schemas.ProductIngestResponse(service_agreement_internal_id="SA-1")

    await service.handle_success(res)

    assert drain_events(event_bus) == []


@pytest.mark.asyncio
async def test_disabled_events_are_not_published(event_bus, transaction_client):
    """Test the completed and failed event switches."""
    service = make_service(
        event_bus,
        transaction_client,
        completed_event_enabled=False,
        failed_event_enabled=False,
    )

    await service.handle_success(ingest_response(schemas.ProductGroup(loans=[product("l")])))
    service.handle_failure(RuntimeError("boom"))

    assert drain_events(event_bus) == []


@pytest.mark.asyncio
async def test_handle_failure_emits_failed_event(event_bus, transaction_client):
    """Test that a failed ingestion publishes the error message."""
    service = make_service(event_bus, transaction_client)

    service.handle_failure(RuntimeError("ingestion broke"))

    events = drain_events(event_bus)
    assert len(events) == 1
    assert events[0].event_type == "product.failed"
    assert events[0].event.message == "ingestion broke"


@pytest.mark.asyncio
async def test_sync_chain_failure_waits_for_cancelled_pulls(event_bus, transaction_client):
    """Test that pulls still running when another fails are cancelled and awaited."""
    cancelled = []

    async def pull(request):
        if request.external_arrangement_id == "fails":
            raise httpx.ConnectError("connection refused")
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled.append(request.external_arrangement_id)
            raise

    transaction_client.pull_transactions.side_effect = pull
    service = make_service(event_bus, transaction_client, transaction_chain_enabled=True)
    res = ingest_response(schemas.ProductGroup(loans=[product("fails"), product("slow")]))

    with pytest.raises(IntegrationException):
        await service.handle_success(res)

    assert cancelled == ["slow"]
