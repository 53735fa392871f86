# pinboard/services/feed_client.py
# Client for the booking calendar's property list. Single attempt, no retry:
# a failed refresh leaves the previous index and external pins in place.

import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from pinboard.core.config import settings
from pinboard.core.errors import IOFailureError
from pinboard.models.dto import PropertyRecord

logger = logging.getLogger(__name__)


class PropertyFeedClient:
    """Fetches and coerces the external property feed."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or settings.PROPERTY_FEED_URL
        self.timeout = settings.PROPERTY_FEED_TIMEOUT if timeout is None else timeout
        self._transport = transport

    async def fetch(self) -> List[PropertyRecord]:
        """
        Returns:
            The feed's records, with malformed entries skipped.

        Raises:
            IOFailureError: on timeout, transport error, non-2xx status or a
                payload that is not a JSON array.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException:
            logger.warning(f"Property feed request timed out after {self.timeout}s.")
            raise IOFailureError("Property feed timed out.", source=self.url)
        except httpx.HTTPStatusError as e:
            logger.error(f"Property feed returned status error: {e.response.status_code}")
            raise IOFailureError(f"Property feed returned {e.response.status_code}.", source=self.url)
        except httpx.HTTPError as e:
            logger.error(f"Property feed request failed: {e}")
            raise IOFailureError("Property feed is unreachable.", source=self.url)
        except ValueError as e:
            logger.error(f"Property feed returned invalid JSON: {e}")
            raise IOFailureError("Property feed returned invalid JSON.", source=self.url)

        if not isinstance(payload, list):
            logger.error(f"Property feed payload is {type(payload).__name__}, expected a list.")
            raise IOFailureError("Property feed returned an unexpected payload.", source=self.url)

        records: List[PropertyRecord] = []
        for position, item in enumerate(payload):
            try:
                records.append(PropertyRecord.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed property at position {position}: {e.error_count()} errors")
        logger.info(f"Loaded {len(records)} properties from feed ({len(payload) - len(records)} skipped).")
        return records
