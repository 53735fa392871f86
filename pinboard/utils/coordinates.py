# pinboard/utils/coordinates.py
"""Coordinate extraction from pasted text.

Staff paste either a bare pair copied from a map's right-click menu or a full
Google Maps URL in one of its historical shapes. Each shape is a
``CoordinatePattern``; ``PATTERNS`` is tried in order and the first match wins.
Short links (goo.gl, maps.app.goo.gl) carry no coordinate and are rejected.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from pydantic import ValidationError

from pinboard.core.errors import InvalidFormatError
from pinboard.models.dto import Coordinate

_FLOAT = r"([-+]?\d+(?:\.\d+)?)"


@dataclass(frozen=True)
class CoordinatePattern:
    name: str
    regex: Pattern[str]
    # Only the bare pair is range-checked before being accepted; an
    # out-of-range pair lets the remaining patterns have a go.
    range_checked: bool = False

    def match(self, text: str) -> Optional[Tuple[float, float]]:
        found = self.regex.search(text)
        if not found:
            return None
        lat, lng = float(found.group(1)), float(found.group(2))
        if self.range_checked and not (-90 <= lat <= 90 and -180 <= lng <= 180):
            return None
        return lat, lng


PATTERNS: Tuple[CoordinatePattern, ...] = (
    # "13.7563, 100.5018" or "13.7563,100.5018"
    CoordinatePattern("direct", re.compile(rf"^{_FLOAT}\s*,\s*{_FLOAT}$"), range_checked=True),
    # https://www.google.com/maps/place/.../@13.7563,100.5018,17z
    CoordinatePattern("at", re.compile(rf"@{_FLOAT},{_FLOAT}")),
    # https://www.google.com/maps?q=13.7563,100.5018 (comma may arrive as %2C)
    CoordinatePattern("query", re.compile(rf"[?&]q={_FLOAT}(?:,|%2[cC])\s*{_FLOAT}")),
    # https://www.google.com/maps/@13.7563,100.5018,17z
    CoordinatePattern("maps_path", re.compile(rf"/maps/@{_FLOAT},{_FLOAT}")),
)


def extract(text: Optional[str]) -> Coordinate:
    """Parse ``text`` into a Coordinate.

    Raises:
        InvalidFormatError: when no pattern matches, or the matched pair is not
            a valid coordinate.
    """
    trimmed = (text or "").strip()
    for pattern in PATTERNS:
        pair = pattern.match(trimmed)
        if pair is None:
            continue
        lat, lng = pair
        try:
            return Coordinate(lat=lat, lng=lng)
        except ValidationError:
            raise InvalidFormatError(
                f"Matched {pattern.name} coordinates {lat},{lng} are out of range.",
                source=trimmed,
            )
    raise InvalidFormatError("No coordinate found in input.", source=trimmed)


@dataclass(frozen=True)
class LineExtraction:
    """Outcome for one pasted line. Exactly one of ``coordinate``/``error`` is set."""
    line_number: int
    text: str
    coordinate: Optional[Coordinate] = None
    error: Optional[InvalidFormatError] = None

    @property
    def ok(self) -> bool:
        return self.coordinate is not None


def split_lines(text: Optional[str]) -> List[str]:
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def extract_lines(text: Optional[str]) -> List[LineExtraction]:
    """Run ``extract`` on every non-blank line independently."""
    results: List[LineExtraction] = []
    for number, line in enumerate(split_lines(text), start=1):
        try:
            results.append(LineExtraction(number, line, coordinate=extract(line)))
        except InvalidFormatError as e:
            results.append(LineExtraction(number, line, error=e))
    return results
