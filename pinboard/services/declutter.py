# pinboard/services/declutter.py
"""Marker declutter: spread near-coincident pins so their labels stay readable.

Greedy single pass in input order, O(n^2) over the pin set. Each pin is compared
against the ORIGINAL coordinates of the pins before it, never against their
adjusted positions, so clusters of more than about eight co-located pins can
still overlap after spreading.
"""

import math
from typing import List, Optional, Sequence

import structlog

from pinboard.core.config import settings
from pinboard.models.dto import LABEL_DIRECTIONS, LayoutPin, PinRecord
from pinboard.utils.distance import degree_distance, polar_offset

logger = structlog.get_logger(__name__)

RING_SIZE = 4
_PIN_FIELDS = set(PinRecord.model_fields)


def displacement(overlaps: int, base_offset: float) -> tuple:
    """Radius and angle (degrees) for a pin that collides with ``overlaps`` earlier pins.

    The first four collisions land on the diagonals of the first ring; every
    further group of four moves out by one more ``base_offset``.
    """
    radius = base_offset * math.ceil(overlaps / RING_SIZE)
    angle = overlaps * 90 + 45
    return radius, angle


def spread(
    pins: Sequence[PinRecord],
    threshold: Optional[float] = None,
    base_offset: Optional[float] = None,
) -> List[LayoutPin]:
    """Return one LayoutPin per input pin, in input order.

    Deterministic: the same pin sequence always yields the same layout.
    """
    threshold = settings.DECLUTTER_THRESHOLD if threshold is None else threshold
    base_offset = settings.DECLUTTER_OFFSET if base_offset is None else base_offset

    placed: List[LayoutPin] = []
    displaced = 0
    for index, pin in enumerate(pins):
        overlaps = sum(
            1
            for earlier in placed
            if degree_distance(pin.lat, pin.lng, earlier.lat, earlier.lng) < threshold
        )
        if overlaps == 0:
            adjusted_lat, adjusted_lng = pin.lat, pin.lng
            direction = LABEL_DIRECTIONS[index % RING_SIZE]
        else:
            radius, angle = displacement(overlaps, base_offset)
            adjusted_lat, adjusted_lng = polar_offset(pin.lat, pin.lng, radius, angle)
            direction = LABEL_DIRECTIONS[overlaps % RING_SIZE]
            displaced += 1

        placed.append(
            LayoutPin(
                **pin.model_dump(include=_PIN_FIELDS),
                adjusted_lat=adjusted_lat,
                adjusted_lng=adjusted_lng,
                label_direction=direction,
            )
        )

    if displaced:
        logger.debug("pins_spread", total=len(placed), displaced=displaced)
    return placed
