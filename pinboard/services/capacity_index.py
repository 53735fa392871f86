# pinboard/services/capacity_index.py
# Occupancy lookup built from the property feed, and the pins the feed implies.

from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence
from urllib.parse import parse_qs, quote, urlsplit

import structlog
from pydantic import BaseModel, ConfigDict, Field

from pinboard.core.config import settings
from pinboard.core.errors import InvalidFormatError
from pinboard.models.dto import Occupancy, PinRecord, PropertyRecord
from pinboard.utils.coordinates import extract
from pinboard.utils.keys import normalize_key

logger = structlog.get_logger(__name__)

HOUSE_PARAM = "house"


def _index_property(entries: Dict[str, Occupancy], prop: PropertyRecord) -> None:
    occupancy = Occupancy(
        capacity=prop.capacity,
        bedrooms=prop.bedrooms,
        bathrooms=prop.bathrooms,
        zone=prop.zone or None,
    )
    # Later properties silently win on a shared key.
    for raw in (prop.name, prop.code):
        key = normalize_key(raw)
        if key:
            entries[key] = occupancy


class CapacityIndex(BaseModel):
    """Normalized property name/code -> occupancy attributes.

    Rebuilt from scratch on every feed refresh. Lookups are pure functions of
    the key and the snapshot the index was built from.
    """
    model_config = ConfigDict(frozen=True)

    entries: Dict[str, Occupancy] = Field(default_factory=dict)

    @classmethod
    def build(cls, properties: Iterable[PropertyRecord]) -> "CapacityIndex":
        entries: Dict[str, Occupancy] = {}
        for prop in properties:
            _index_property(entries, prop)
        return cls(entries=entries)

    def lookup(self, key: Optional[str]) -> Optional[Occupancy]:
        normalized = normalize_key(key)
        if not normalized:
            return None
        return self.entries.get(normalized)

    def __len__(self) -> int:
        return len(self.entries)


def house_key_from_link(link: Optional[str]) -> str:
    """The ``house`` query parameter of a booking link, or '' when absent."""
    if not link:
        return ""
    try:
        query = urlsplit(link).query
    except ValueError:
        return ""
    values = parse_qs(query).get(HOUSE_PARAM)
    return values[0].strip() if values else ""


def build_booking_link(house_key: Optional[str], base_url: Optional[str] = None) -> Optional[str]:
    key = (house_key or "").strip()
    if not key:
        return None
    base_url = settings.BOOKING_BASE_URL if base_url is None else base_url
    return f"{base_url}{quote(key, safe='')}"


def resolve_occupancy(index: CapacityIndex, pin: PinRecord) -> Optional[Occupancy]:
    """Find occupancy data for a pin.

    Key priority: the booking link's ``house`` parameter, then the display
    name. When the derived key misses, the display name alone is tried, which
    covers pins whose booking link points somewhere other than their own name.
    A miss on both is not an error.
    """
    candidates = (
        house_key_from_link(pin.booking_link) or pin.display_name,
        pin.display_name,
    )
    for key in candidates:
        found = index.lookup(key)
        if found is not None:
            return found
    return None


def enrich_pin(index: CapacityIndex, pin: PinRecord) -> PinRecord:
    occupancy = resolve_occupancy(index, pin)
    if occupancy is None:
        return pin
    update = {
        "capacity": occupancy.capacity,
        "bedrooms": occupancy.bedrooms,
        "bathrooms": occupancy.bathrooms,
    }
    if not pin.zone and occupancy.zone:
        update["zone"] = occupancy.zone
    return pin.model_copy(update=update)


def enrich_pins(index: CapacityIndex, pins: Sequence[PinRecord]) -> List[PinRecord]:
    return [enrich_pin(index, pin) for pin in pins]


def is_external(pin_id: str, prefix: Optional[str] = None) -> bool:
    prefix = settings.EXTERNAL_PIN_PREFIX if prefix is None else prefix
    return pin_id.startswith(prefix)


class FeedSnapshot(NamedTuple):
    index: CapacityIndex
    pins: List[PinRecord]
    property_count: int = 0


def pin_from_property(
    prop: PropertyRecord,
    prefix: Optional[str] = None,
    booking_base_url: Optional[str] = None,
) -> Optional[PinRecord]:
    """Synthesize an external pin for a property with an extractable location."""
    if not prop.location:
        return None
    try:
        coordinate = extract(prop.location)
    except InvalidFormatError:
        logger.warning("feed_location_unparseable", property_id=prop.id, location=prop.location)
        return None

    prefix = settings.EXTERNAL_PIN_PREFIX if prefix is None else prefix
    house_key = prop.name or prop.code or ""
    return PinRecord(
        id=f"{prefix}{prop.id or normalize_key(house_key)}",
        coordinate=coordinate,
        display_name=prop.name or "",
        external_code=prop.api_code or prop.code,
        source_link=prop.location,
        booking_link=build_booking_link(house_key, booking_base_url),
        capacity=prop.capacity,
        bedrooms=prop.bedrooms,
        bathrooms=prop.bathrooms,
        zone=prop.zone or "",
    )


def build_feed_snapshot(
    properties: Sequence[PropertyRecord],
    prefix: Optional[str] = None,
    booking_base_url: Optional[str] = None,
) -> FeedSnapshot:
    """Build the index and the external pins in one pass over the feed."""
    entries: Dict[str, Occupancy] = {}
    pins: List[PinRecord] = []
    for prop in properties:
        _index_property(entries, prop)
        pin = pin_from_property(prop, prefix, booking_base_url)
        if pin is not None:
            pins.append(pin)
    index = CapacityIndex(entries=entries)
    logger.info("feed_snapshot_built", properties=len(properties), index_keys=len(index), pins=len(pins))
    return FeedSnapshot(index=index, pins=pins, property_count=len(properties))


def merge_feed_pins(
    pins: Sequence[PinRecord],
    feed_pins: Sequence[PinRecord],
    prefix: Optional[str] = None,
) -> List[PinRecord]:
    """Replace every external pin wholesale; user pins keep their order and come first."""
    kept = [pin for pin in pins if not is_external(pin.id, prefix)]
    return kept + list(feed_pins)
