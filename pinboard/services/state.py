# pinboard/services/state.py
"""Application state as one immutable snapshot plus pure reducers.

The FastAPI app owns a single ``StateContainer``. Each event (a load finishing,
a pin being created, a focus toggle) swaps in a new ``PinboardState``; nothing
mutates a pin or the index in place. All handlers run on one event loop, so the
swap needs no locking.
"""

from typing import Callable, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from pinboard.core.config import settings
from pinboard.core.errors import NotFoundError
from pinboard.models.dto import Coordinate, FocusSet, LayoutResponse, PinRecord
from pinboard.services import focus as focus_ops
from pinboard.services.capacity_index import (
    CapacityIndex,
    FeedSnapshot,
    enrich_pins,
    is_external,
    merge_feed_pins,
)
from pinboard.services.declutter import spread


class PinboardState(BaseModel):
    model_config = ConfigDict(frozen=True)

    pins: Tuple[PinRecord, ...] = ()
    index: CapacityIndex = Field(default_factory=CapacityIndex)
    focus: FocusSet = Field(default_factory=FocusSet)
    pins_loaded: bool = False
    feed_loaded: bool = False

    def get_pin(self, pin_id: str) -> PinRecord:
        for pin in self.pins:
            if pin.id == pin_id:
                return pin
        raise NotFoundError(f"Pin {pin_id} does not exist.", source=pin_id)


# --- Reducers ---

def with_loaded_pins(state: PinboardState, stored: Sequence[PinRecord]) -> PinboardState:
    """Replace user pins with a fresh store listing; external pins stay."""
    external = [pin for pin in state.pins if is_external(pin.id)]
    stored_ids = {pin.id for pin in stored}
    focus = FocusSet(ids=tuple(i for i in state.focus.ids if i in stored_ids or is_external(i)))
    return state.model_copy(update={
        "pins": tuple(stored) + tuple(external),
        "focus": focus,
        "pins_loaded": True,
    })


def with_feed(state: PinboardState, snapshot: FeedSnapshot) -> PinboardState:
    return state.model_copy(update={
        "pins": tuple(merge_feed_pins(state.pins, snapshot.pins)),
        "index": snapshot.index,
        "feed_loaded": True,
    })


def with_added_pins(state: PinboardState, created: Sequence[PinRecord]) -> PinboardState:
    """Append newly created pins; the last one becomes the only focused pin."""
    if not created:
        return state
    return state.model_copy(update={
        "pins": state.pins + tuple(created),
        "focus": focus_ops.focus_only(created[-1].id),
    })


def with_updated_pin(state: PinboardState, updated: PinRecord) -> PinboardState:
    """Swap in the stored copy of a pin, appending it if this snapshot lacks it."""
    if any(pin.id == updated.id for pin in state.pins):
        pins = tuple(updated if pin.id == updated.id else pin for pin in state.pins)
    else:
        pins = state.pins + (updated,)
    return state.model_copy(update={
        "pins": pins,
        "focus": focus_ops.focus_only(updated.id),
    })


def with_removed_pin(state: PinboardState, pin_id: str) -> PinboardState:
    return state.model_copy(update={
        "pins": tuple(pin for pin in state.pins if pin.id != pin_id),
        "focus": focus_ops.discard(state.focus, pin_id),
    })


def with_focus(state: PinboardState, focus: FocusSet) -> PinboardState:
    return state.model_copy(update={"focus": focus})


class StateContainer:
    """Holds the current snapshot for the lifetime of the app."""

    def __init__(self, state: Optional[PinboardState] = None):
        self.current: PinboardState = state or PinboardState()

    def apply(self, reducer: Callable[..., PinboardState], *args) -> PinboardState:
        self.current = reducer(self.current, *args)
        return self.current


# --- Derived views ---

def render_layout(
    state: PinboardState,
    zone: Optional[str] = None,
    share_target: Optional[str] = None,
) -> LayoutResponse:
    """Enrich, filter and spread the current pins. Recomputed on every call.

    In share mode the focus holds only the shared pin, and only when it exists.
    """
    enriched = enrich_pins(state.index, state.pins)
    visible = focus_ops.select_visible(enriched, zone=zone, share_target=share_target)
    layout = spread(visible.pins)
    if visible.share_target is None:
        focus = state.focus
    else:
        focus = focus_ops.focus_only(visible.share_target) if visible.share_found else FocusSet()
    return LayoutResponse(
        pins=layout,
        focus=list(focus.ids),
        most_recent=focus_ops.most_recent(focus),
        share_target=visible.share_target,
        share_found=visible.share_found,
        center=map_center(visible.pins),
        pins_loaded=state.pins_loaded,
        feed_loaded=state.feed_loaded,
    )


def map_center(pins: Sequence[PinRecord]) -> Coordinate:
    """Mean position of the visible pins, or the configured default center."""
    if not pins:
        lat, lng = settings.DEFAULT_CENTER
        return Coordinate(lat=lat, lng=lng)
    count = len(pins)
    return Coordinate(
        lat=sum(pin.lat for pin in pins) / count,
        lng=sum(pin.lng for pin in pins) / count,
    )
