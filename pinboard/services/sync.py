# pinboard/services/sync.py
# The two startup loads. Each writes only its own slice of state and may finish
# in either order; a failure leaves that slice as it was.

import asyncio
from typing import Optional

import structlog

from pinboard.core.errors import IOFailureError
from pinboard.services.capacity_index import FeedSnapshot, build_feed_snapshot
from pinboard.services.feed_client import PropertyFeedClient
from pinboard.services.pin_store import PinStore
from pinboard.services.state import PinboardState, StateContainer, with_feed, with_loaded_pins

logger = structlog.get_logger(__name__)


async def load_pins(container: StateContainer, store: PinStore) -> PinboardState:
    """Replace user pins with the store's listing. Raises IOFailureError."""
    stored = await store.list_all()
    logger.info("pins_loaded", count=len(stored))
    return container.apply(with_loaded_pins, stored)


async def refresh_feed(container: StateContainer, client: PropertyFeedClient) -> FeedSnapshot:
    """Rebuild the capacity index and external pins. Raises IOFailureError."""
    properties = await client.fetch()
    snapshot = build_feed_snapshot(properties)
    container.apply(with_feed, snapshot)
    return snapshot


async def initial_load(
    container: StateContainer,
    store: PinStore,
    client: Optional[PropertyFeedClient],
) -> None:
    """Run both loads concurrently; log failures instead of raising."""
    tasks = [load_pins(container, store)]
    if client is not None:
        tasks.append(refresh_feed(container, client))
    results = await asyncio.gather(*tasks, return_exceptions=True)
    for name, result in zip(("pins", "feed"), results):
        if isinstance(result, IOFailureError):
            logger.warning("initial_load_failed", slice=name, error=result.detail)
        elif isinstance(result, BaseException):
            logger.error("initial_load_crashed", slice=name, error=repr(result))
