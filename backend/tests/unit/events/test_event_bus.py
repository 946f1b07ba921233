"""Tests for the event buses."""

from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest

from stream_compositions import schemas
from stream_compositions.events import (
    EventType,
    InMemoryEventBus,
    SvixEventBus,
    build_event_bus,
)
from stream_compositions.events.bus import generate_svix_token


def completed_envelope() -> schemas.EnvelopedEvent:
    return schemas.EnvelopedEvent(
        event_type=EventType.PRODUCT_COMPLETED.value,
        event=schemas.ProductCompletedEvent(
            product_groups=[
                schemas.EventProductGroup(
                    name="group",
                    savings_accounts=[schemas.EventProduct(external_id="sa-1")],
                )
            ]
        ),
    )


@pytest.mark.asyncio
async def test_in_memory_bus_queues_events():
    """Test that emitted envelopes are queued in order."""
    bus = InMemoryEventBus()
    first = completed_envelope()
    second = schemas.EnvelopedEvent(
        event_type=EventType.PRODUCT_FAILED.value,
        event=schemas.ProductFailedEvent(message="boom"),
    )

    bus.emit_event(first)
    bus.emit_event(second)

    assert await bus.queue.get() is first
    assert await bus.queue.get() is second


@pytest.mark.asyncio
async def test_svix_bus_publishes_message():
    """Test that the envelope is sent as a Svix message on its event type channel."""
    svix = MagicMock()
    svix.message.create = AsyncMock()
    bus = SvixEventBus(
        server_url="http://svix", signing_secret="secret", app_uid="app-1", svix=svix
    )
    envelope = completed_envelope()

    bus.emit_event(envelope)
    await bus.drain()

    svix.message.create.assert_awaited_once()
    app_uid, message = svix.message.create.await_args.args
    assert app_uid == "app-1"
    assert message.event_type == "product.completed"
    assert message.channels == ["product.completed"]
    assert message.event_id == envelope.event_id
    assert message.payload["eventType"] == "product.completed"
    group = message.payload["event"]["productGroups"][0]
    assert group["savingAccounts"][0]["externalId"] == "sa-1"


@pytest.mark.asyncio
async def test_svix_bus_logs_publish_failures():
    """Test that a failed publish does not raise."""
    svix = MagicMock()
    svix.message.create = AsyncMock(side_effect=RuntimeError("svix down"))
    logger = MagicMock()
    bus = SvixEventBus(
        server_url="http://svix",
        signing_secret="secret",
        app_uid="app-1",
        logger=logger,
        svix=svix,
    )

    bus.emit_event(completed_envelope())
    await bus.drain()

    logger.error.assert_called_once()
    assert "svix down" in logger.error.call_args.args[0]


def test_generate_svix_token():
    """Test that the token is signed with the secret."""
    token = generate_svix_token("secret")

    claims = jwt.decode(token, "secret", algorithms=["HS256"])
    assert claims["iss"] == "svix-server"
    assert claims["exp"] > claims["iat"]


def test_build_event_bus():
    """Test choosing the event bus backend."""
    assert isinstance(build_event_bus("memory", "", "", ""), InMemoryEventBus)
    with pytest.raises(ValueError):
        build_event_bus("kafka", "", "", "")


@pytest.mark.asyncio
async def test_in_memory_bus_drain_returns_immediately():
    """Test that draining a bus without background publishes is a no-op."""
    bus = InMemoryEventBus()
    bus.emit_event(completed_envelope())

    await bus.drain()

    assert bus.queue.qsize() == 1
