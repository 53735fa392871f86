# pinboard/services/pin_store.py
"""Pin persistence: a document collection keyed by opaque string ids.

Documents hold the PinRecord fields minus ``id``. Backend failures surface as
``IOFailureError``; callers leave their state untouched when one is raised.
"""
import json
import uuid
from typing import Any, Dict, List, Optional, Protocol

import structlog
from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from pinboard.core.config import settings
from pinboard.core.errors import IOFailureError, NotFoundError
from pinboard.models.dto import PinRecord

logger = structlog.get_logger(__name__)

# Fields a caller may change after creation.
UPDATABLE_FIELDS = frozenset({
    "coordinate", "display_name", "external_code", "source_link",
    "booking_link", "capacity", "bedrooms", "bathrooms", "zone",
})


def to_document(pin: PinRecord) -> Dict[str, Any]:
    return pin.model_dump(mode="json", exclude={"id"})


def from_document(pin_id: str, doc: Dict[str, Any]) -> PinRecord:
    return PinRecord.model_validate({**doc, "id": pin_id})


class PinStore(Protocol):
    """What the app needs from persistence."""
    async def list_all(self) -> List[PinRecord]: ...
    async def create(self, doc: Dict[str, Any]) -> str: ...
    async def update(self, pin_id: str, fields: Dict[str, Any]) -> PinRecord: ...
    async def delete(self, pin_id: str) -> None: ...


def _check_fields(fields: Dict[str, Any]) -> None:
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown pin fields: {sorted(unknown)}")


class InMemoryPinStore:
    """Process-local store for development and tests."""

    def __init__(self):
        self._docs: Dict[str, Dict[str, Any]] = {}

    async def list_all(self) -> List[PinRecord]:
        return [from_document(pin_id, doc) for pin_id, doc in self._docs.items()]

    async def create(self, doc: Dict[str, Any]) -> str:
        pin_id = uuid.uuid4().hex
        self._docs[pin_id] = to_document(from_document(pin_id, doc))
        return pin_id

    async def update(self, pin_id: str, fields: Dict[str, Any]) -> PinRecord:
        _check_fields(fields)
        if pin_id not in self._docs:
            raise NotFoundError(f"Pin {pin_id} does not exist.", source=pin_id)
        merged = {**self._docs[pin_id], **fields}
        pin = from_document(pin_id, merged)
        self._docs[pin_id] = to_document(pin)
        return pin

    async def delete(self, pin_id: str) -> None:
        if self._docs.pop(pin_id, None) is None:
            raise NotFoundError(f"Pin {pin_id} does not exist.", source=pin_id)


class RedisPinStore:
    """
    Redis-backed store: one hash of JSON documents plus a list that keeps
    insertion order, so layouts stay stable across reloads.
    """

    def __init__(self, redis_client: Redis, namespace: Optional[str] = None):
        self.redis_client = redis_client
        namespace = namespace or settings.PIN_STORE_NAMESPACE
        self.docs_key = f"{namespace}:docs"
        self.order_key = f"{namespace}:order"

    @classmethod
    def from_url(cls, url: str, namespace: Optional[str] = None) -> "RedisPinStore":
        if not url:
            raise ValueError("REDIS_URL is not set in the environment")
        return cls(Redis.from_url(url, decode_responses=True), namespace)

    async def list_all(self) -> List[PinRecord]:
        try:
            order = await self.redis_client.lrange(self.order_key, 0, -1)
            docs = await self.redis_client.hgetall(self.docs_key)
        except RedisError as e:
            logger.error("pin_store_list_error", error=str(e))
            raise IOFailureError("Could not load pins from the store.", source="redis")

        pins: List[PinRecord] = []
        for pin_id in order:
            raw = docs.get(pin_id)
            if raw is None:
                continue
            try:
                pins.append(from_document(pin_id, json.loads(raw)))
            except (ValueError, ValidationError) as e:
                logger.warning("pin_store_document_invalid", pin_id=pin_id, error=str(e))
        return pins

    async def create(self, doc: Dict[str, Any]) -> str:
        pin_id = uuid.uuid4().hex
        payload = json.dumps(to_document(from_document(pin_id, doc)))
        try:
            # MULTI/EXEC: the document and its order entry land together or not at all.
            async with self.redis_client.pipeline(transaction=True) as pipe:
                pipe.hset(self.docs_key, pin_id, payload)
                pipe.rpush(self.order_key, pin_id)
                await pipe.execute()
        except RedisError as e:
            logger.error("pin_store_create_error", error=str(e))
            raise IOFailureError("Could not save the pin.", source="redis")
        return pin_id

    async def update(self, pin_id: str, fields: Dict[str, Any]) -> PinRecord:
        _check_fields(fields)
        try:
            raw = await self.redis_client.hget(self.docs_key, pin_id)
        except RedisError as e:
            logger.error("pin_store_update_error", error=str(e), pin_id=pin_id)
            raise IOFailureError("Could not update the pin.", source="redis")
        if raw is None:
            raise NotFoundError(f"Pin {pin_id} does not exist.", source=pin_id)

        pin = from_document(pin_id, {**json.loads(raw), **fields})
        try:
            await self.redis_client.hset(self.docs_key, pin_id, json.dumps(to_document(pin)))
        except RedisError as e:
            logger.error("pin_store_update_error", error=str(e), pin_id=pin_id)
            raise IOFailureError("Could not update the pin.", source="redis")
        return pin

    async def delete(self, pin_id: str) -> None:
        try:
            async with self.redis_client.pipeline(transaction=True) as pipe:
                pipe.hdel(self.docs_key, pin_id)
                pipe.lrem(self.order_key, 0, pin_id)
                removed, _ = await pipe.execute()
        except RedisError as e:
            logger.error("pin_store_delete_error", error=str(e), pin_id=pin_id)
            raise IOFailureError("Could not delete the pin.", source="redis")
        if not removed:
            raise NotFoundError(f"Pin {pin_id} does not exist.", source=pin_id)

    async def close(self) -> None:
        await self.redis_client.aclose()


def create_pin_store() -> PinStore:
    """Pick the backend from settings: Redis when enabled and configured."""
    if settings.ENABLE_REDIS and settings.REDIS_URL:
        logger.info("pin_store_selected", backend="redis")
        return RedisPinStore.from_url(settings.REDIS_URL)
    logger.info("pin_store_selected", backend="memory")
    return InMemoryPinStore()
