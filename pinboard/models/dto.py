# pinboard/models/dto.py
# Value types for pins and the property feed, plus the API request/response DTOs

import re
from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

_LEADING_INT = re.compile(r"^\s*([-+]?\d+)")


def coerce_count(value: Any) -> int:
    """Tolerant integer coercion for feed counts.

    Accepts ints, floats and strings with a leading integer ("6", " 4 ", "3 rooms").
    Anything else, including None and booleans, becomes 0.
    """
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and value not in (float("inf"), float("-inf")) else 0
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else 0
    return 0


# --- Core value types ---

class Coordinate(BaseModel):
    """A validated WGS84 point. Always finite and in range."""
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    lat: float = Field(..., ge=-90, le=90, description="Latitude.")
    lng: float = Field(..., ge=-180, le=180, description="Longitude.")


class PinRecord(BaseModel):
    """A mapped location. Treated as a value: enrichment returns copies."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Opaque, stable identifier.")
    coordinate: Coordinate
    display_name: Optional[str] = Field(None, description="Name shown on the map label.")
    external_code: Optional[str] = Field(None, description="Property code in the booking system.")
    source_link: str = Field("", description="The text the coordinate was extracted from.")
    booking_link: Optional[str] = Field(None, description="Calendar link carrying a `house` parameter.")
    capacity: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    zone: Optional[str] = None

    @property
    def lat(self) -> float:
        return self.coordinate.lat

    @property
    def lng(self) -> float:
        return self.coordinate.lng


class PropertyRecord(BaseModel):
    """One item of the external property feed, coerced at the boundary."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    name: Optional[str] = None
    code: Optional[str] = None
    location: Optional[str] = None
    capacity: int = 0
    bedrooms: int = 0
    bathrooms: int = 0
    zone: Optional[str] = None
    api_code: Optional[str] = Field(None, alias="apiCode")

    @field_validator("capacity", "bedrooms", "bathrooms", mode="before")
    @classmethod
    def _coerce_counts(cls, value: Any) -> int:
        return coerce_count(value)

    @field_validator("id", "name", "code", "location", "zone", "api_code", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)


class Occupancy(BaseModel):
    """Occupancy attributes resolved from the feed for one key."""
    model_config = ConfigDict(frozen=True)

    capacity: int = 0
    bedrooms: int = 0
    bathrooms: int = 0
    zone: Optional[str] = None


class LabelDirection(str, Enum):
    N = "N"
    E = "E"
    S = "S"
    W = "W"


LABEL_DIRECTIONS: Tuple[LabelDirection, ...] = (
    LabelDirection.N,
    LabelDirection.E,
    LabelDirection.S,
    LabelDirection.W,
)


class LayoutPin(PinRecord):
    """A pin plus its render position. Derived on every layout pass, never stored."""

    adjusted_lat: float
    adjusted_lng: float
    label_direction: LabelDirection


class FocusSet(BaseModel):
    """Ordered set of highlighted pin ids; the last one is the most recent."""
    model_config = ConfigDict(frozen=True)

    ids: Tuple[str, ...] = ()

    def __contains__(self, pin_id: object) -> bool:
        return pin_id in self.ids

    def __len__(self) -> int:
        return len(self.ids)


# --- API Request Models ---

class CreatePinsRequest(BaseModel):
    """Multi-line paste: one coordinate or Google Maps link per line."""
    text: str = Field(..., description="Raw pasted text.")


class UpdatePinRequest(BaseModel):
    display_name: Optional[str] = Field(None, description="New display name.")
    booking_key: Optional[str] = Field(None, description="House key for the booking calendar link.")


class LoginRequest(BaseModel):
    username: str
    password: str


# --- Error Response Model ---

class ErrorResponse(BaseModel):
    """Standardized error response model."""
    error: str = Field(..., description="A machine-readable error code.")
    detail: str = Field(..., description="A human-readable explanation.")


# --- API Response Models ---

class LineResult(BaseModel):
    line_number: int = Field(..., description="1-based position among the non-blank lines.")
    input: str
    pin: Optional[PinRecord] = None
    error: Optional[ErrorResponse] = None


class CreatePinsResponse(BaseModel):
    created: List[PinRecord] = Field(default_factory=list)
    failed: List[LineResult] = Field(default_factory=list)


class LayoutResponse(BaseModel):
    pins: List[LayoutPin]
    focus: List[str] = Field(default_factory=list)
    most_recent: Optional[str] = None
    share_target: Optional[str] = None
    share_found: Optional[bool] = Field(None, description="Only set in share mode.")
    center: Coordinate
    pins_loaded: bool = False
    feed_loaded: bool = False


class FocusResponse(BaseModel):
    focus: List[str]
    most_recent: Optional[str] = None


class ShareLinkResponse(BaseModel):
    url: str


class LoginResponse(BaseModel):
    token: str
    username: str


class FeedRefreshResponse(BaseModel):
    properties: int
    external_pins: int
    index_keys: int
