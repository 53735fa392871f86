# pinboard/services/focus.py
"""Focus tracking for list/map synchronization, and single-pin share links."""

from typing import List, NamedTuple, Optional, Sequence
from urllib.parse import parse_qs, parse_qsl, urlencode, urlsplit, urlunsplit

from pinboard.core.config import settings
from pinboard.models.dto import FocusSet, PinRecord
from pinboard.utils.keys import normalize_key


def toggle(focus: FocusSet, pin_id: str) -> FocusSet:
    """Insert ``pin_id`` as most recent if absent, remove it if present."""
    if pin_id in focus.ids:
        return FocusSet(ids=tuple(i for i in focus.ids if i != pin_id))
    return FocusSet(ids=focus.ids + (pin_id,))


def focus_only(pin_id: str) -> FocusSet:
    """A focus set holding just ``pin_id``; used to move the viewport onto a created or edited pin."""
    return FocusSet(ids=(pin_id,))


def discard(focus: FocusSet, pin_id: str) -> FocusSet:
    if pin_id not in focus.ids:
        return focus
    return FocusSet(ids=tuple(i for i in focus.ids if i != pin_id))


def most_recent(focus: FocusSet) -> Optional[str]:
    """The id the viewport should center on, if any."""
    return focus.ids[-1] if focus.ids else None


def build_share_link(base_url: str, pin_id: str, param: Optional[str] = None) -> str:
    """``base_url`` with the share parameter set to ``pin_id``.

    Existing query parameters are kept; a previous share parameter is replaced.
    """
    param = param or settings.SHARE_PARAM
    parts = urlsplit(base_url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != param]
    query.append((param, pin_id))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def parse_share_target(url: Optional[str], param: Optional[str] = None) -> Optional[str]:
    """The shared pin id carried by ``url``; None means normal (non-share) mode."""
    if not url:
        return None
    param = param or settings.SHARE_PARAM
    values = parse_qs(urlsplit(url).query).get(param)
    if not values or not values[0]:
        return None
    return values[0]


class VisiblePins(NamedTuple):
    pins: List[PinRecord]
    share_target: Optional[str] = None
    # None outside share mode; False is the explicit "not found" state.
    share_found: Optional[bool] = None


def select_visible(
    pins: Sequence[PinRecord],
    zone: Optional[str] = None,
    share_target: Optional[str] = None,
) -> VisiblePins:
    """Restrict the rendered pins.

    In share mode only the addressed pin is shown and the zone filter is
    ignored. Otherwise ``zone`` (when given) keeps pins whose zone matches
    after normalization.
    """
    if share_target:
        matches = [pin for pin in pins if pin.id == share_target][:1]
        return VisiblePins(pins=matches, share_target=share_target, share_found=bool(matches))

    wanted = normalize_key(zone)
    if not wanted:
        return VisiblePins(pins=list(pins))
    return VisiblePins(pins=[pin for pin in pins if normalize_key(pin.zone) == wanted])
