"""Outbound event bus.

Publishing is fire-and-forget: ``emit_event`` returns immediately and never
waits for an acknowledgment. Delivery failures are logged by the bus.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Optional, Set

import jwt
from svix.api import MessageIn, SvixAsync, SvixOptions

from stream_compositions.core.logging import ContextualLogger
from stream_compositions.core.logging import logger as default_logger
from stream_compositions.schemas.events import EnvelopedEvent

# 10 years in seconds
TOKEN_DURATION_SECONDS = 24 * 365 * 10 * 60 * 60


class EventBus(ABC):
    """Channel that enveloped events are published to."""

    @abstractmethod
    def emit_event(self, envelope: EnvelopedEvent) -> None:
        """Publish ``envelope`` without waiting for delivery."""

    async def drain(self) -> None:
        """Wait for publishes still in flight. Buses that publish inline have none."""


class InMemoryEventBus(EventBus):
    """Event bus backed by an asyncio queue, for local runs and tests."""

    def __init__(self, logger: Optional[ContextualLogger] = None) -> None:
        """Create an empty bus."""
        self.queue: "asyncio.Queue[EnvelopedEvent]" = asyncio.Queue()
        self.logger = logger or default_logger.with_context(component="event_bus")

    def emit_event(self, envelope: EnvelopedEvent) -> None:
        """Put the envelope on the queue."""
        self.queue.put_nowait(envelope)
        self.logger.debug(f"Queued {envelope.event_type} event {envelope.event_id}")


def generate_svix_token(signing_secret: str) -> str:
    """Generate a JWT for Svix API authentication.

    Args:
        signing_secret: The secret used to sign the JWT.

    Returns:
        A signed JWT token string.
    """
    now = int(time.time())
    payload = {
        "iat": now,
        "exp": now + TOKEN_DURATION_SECONDS,
        "nbf": now,
        "iss": "svix-server",
        "sub": "org_23rb8YdGqMT0qIzpgGwdXfHirMu",
    }
    return jwt.encode(payload, signing_secret, algorithm="HS256")


class SvixEventBus(EventBus):
    """Publishes events as Svix messages to one application.

    Each publish runs in a background task; the task set keeps references until
    the tasks finish.
    """

    def __init__(
        self,
        server_url: str,
        signing_secret: str,
        app_uid: str,
        logger: Optional[ContextualLogger] = None,
        svix: Optional[SvixAsync] = None,
    ) -> None:
        """Create a bus publishing to the Svix application ``app_uid``.

        Args:
            server_url: Svix server URL
            signing_secret: Secret used to sign the API token
            app_uid: Svix application receiving the events
            logger: Optional contextual logger
            svix: Preconfigured client, built from the other arguments if omitted
        """
        self.app_uid = app_uid
        self.logger = logger or default_logger.with_context(component="event_bus")
        self.svix = svix or SvixAsync(
            generate_svix_token(signing_secret), SvixOptions(server_url=server_url)
        )
        self._tasks: Set[asyncio.Task] = set()

    def emit_event(self, envelope: EnvelopedEvent) -> None:
        """Schedule the Svix publish and return."""
        task = asyncio.create_task(self._publish(envelope))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _publish(self, envelope: EnvelopedEvent) -> None:
        try:
            await self.svix.message.create(
                self.app_uid,
                MessageIn(
                    event_type=envelope.event_type,
                    channels=[envelope.event_type],
                    event_id=envelope.event_id,
                    payload=envelope.model_dump(mode="json", by_alias=True),
                ),
            )
            self.logger.debug(f"Published {envelope.event_type} event {envelope.event_id}")
        except Exception as e:
            self.logger.error(
                f"Failed to publish {envelope.event_type} event {envelope.event_id}: "
                f"{getattr(e, 'detail', e)}"
            )

    async def drain(self) -> None:
        """Wait for the publishes still in flight."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


def build_event_bus(backend: str, server_url: str, signing_secret: str, app_uid: str) -> EventBus:
    """Create the event bus selected by ``backend`` (``memory`` or ``svix``)."""
    if backend == "memory":
        return InMemoryEventBus()
    if backend == "svix":
        return SvixEventBus(server_url=server_url, signing_secret=signing_secret, app_uid=app_uid)
    raise ValueError(f"Unsupported event bus backend: {backend}")
