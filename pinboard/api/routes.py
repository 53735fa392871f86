# pinboard/api/routes.py
# HTTP surface for the pin map: pin CRUD, layout, focus, sharing, feed refresh, login

from fastapi import APIRouter, Request, Response, HTTPException, Query, status
import logging
from typing import Any, Dict, List, Optional

# Local imports
from pinboard.core.config import settings
from pinboard.core.errors import IOFailureError
from pinboard.models.dto import (
    CreatePinsRequest,
    CreatePinsResponse,
    ErrorResponse,
    FeedRefreshResponse,
    FocusResponse,
    LayoutResponse,
    LineResult,
    LoginRequest,
    LoginResponse,
    PinRecord,
    ShareLinkResponse,
    UpdatePinRequest,
)
from pinboard.services import focus as focus_ops
from pinboard.services.capacity_index import build_booking_link, is_external
from pinboard.services.i18n import get_message, language_from_header
from pinboard.services.state import (
    StateContainer,
    render_layout,
    with_added_pins,
    with_focus,
    with_removed_pin,
    with_updated_pin,
)
from pinboard.services.sync import load_pins, refresh_feed
from pinboard.utils.coordinates import extract_lines

router = APIRouter()
logger = logging.getLogger(__name__)


def _lang(request: Request) -> str:
    return language_from_header(request.headers.get("accept-language", ""))


def _container(request: Request) -> StateContainer:
    return request.app.state.container


def error_body(code: str, lang: str, detail: Optional[str] = None) -> ErrorResponse:
    return ErrorResponse(error=code, detail=detail or get_message(code, lang))


def _read_only(request: Request) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=error_body("EXTERNAL_PIN_READ_ONLY", _lang(request)).model_dump(),
    )


# ----------------------------------------------------------------------
# Login
# ----------------------------------------------------------------------
@router.post(
    "/auth/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def login(request: Request, response: Response, data: LoginRequest):
    result = await request.app.state.auth_service.login(data.username, data.password)
    response.set_cookie(
        key="pinboard_token",
        value=result.token,
        httponly=True,
        secure=(settings.ENV == "production"),
        samesite="lax",
    )
    return LoginResponse(token=result.token, username=result.username)


# ----------------------------------------------------------------------
# Layout
# ----------------------------------------------------------------------
@router.get("/pins", response_model=LayoutResponse)
async def get_layout(
    request: Request,
    zone: Optional[str] = Query(None, description="Only pins in this zone."),
    share: Optional[str] = Query(None, description="Shared pin id; restricts the view to that pin."),
):
    """Render-ready pins: enriched with occupancy data and spread apart."""
    return render_layout(_container(request).current, zone=zone, share_target=share or None)


# ----------------------------------------------------------------------
# Pin CRUD
# ----------------------------------------------------------------------
@router.post("/pins", response_model=CreatePinsResponse)
async def create_pins(request: Request, data: CreatePinsRequest):
    """One pin per pasted line. Lines fail independently and are reported individually."""
    lang = _lang(request)
    store = request.app.state.pin_store
    created: List[PinRecord] = []
    failed: List[LineResult] = []

    for line in extract_lines(data.text):
        if not line.ok:
            logger.info(f"Line {line.line_number} is not a coordinate: {line.text!r}")
            failed.append(LineResult(
                line_number=line.line_number,
                input=line.text,
                error=error_body(line.error.code, lang),
            ))
            continue

        doc: Dict[str, Any] = {
            "coordinate": line.coordinate.model_dump(),
            "source_link": line.text,
            "display_name": "",
        }
        try:
            pin_id = await store.create(doc)
        except IOFailureError as e:
            logger.error(f"Saving line {line.line_number} failed: {e.detail}")
            failed.append(LineResult(
                line_number=line.line_number,
                input=line.text,
                error=error_body(e.code, lang),
            ))
            continue

        pin = PinRecord(id=pin_id, **doc)
        created.append(pin)

    _container(request).apply(with_added_pins, created)
    return CreatePinsResponse(created=created, failed=failed)


@router.patch(
    "/pins/{pin_id}",
    response_model=PinRecord,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def update_pin(request: Request, pin_id: str, data: UpdatePinRequest):
    """Rename a pin and/or point its booking link at a calendar house key."""
    if is_external(pin_id):
        raise _read_only(request)

    fields: Dict[str, Any] = {}
    if data.display_name is not None:
        fields["display_name"] = data.display_name
    if data.booking_key is not None:
        fields["booking_link"] = build_booking_link(data.booking_key)

    try:
        pin = await request.app.state.pin_store.update(pin_id, fields)
    except ValueError as e:
        # Pydantic ValidationError is a ValueError too.
        logger.warning(f"Rejected update for pin {pin_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=error_body("INVALID_FIELDS", _lang(request)).model_dump(),
        )
    _container(request).apply(with_updated_pin, pin)
    return pin


@router.delete(
    "/pins/{pin_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def delete_pin(request: Request, pin_id: str):
    if is_external(pin_id):
        raise _read_only(request)
    await request.app.state.pin_store.delete(pin_id)
    _container(request).apply(with_removed_pin, pin_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/pins/reload", response_model=LayoutResponse, responses={503: {"model": ErrorResponse}})
async def reload_pins(request: Request):
    state = await load_pins(_container(request), request.app.state.pin_store)
    return render_layout(state)


# ----------------------------------------------------------------------
# Focus and sharing
# ----------------------------------------------------------------------
@router.post("/focus/{pin_id}/toggle", response_model=FocusResponse, responses={404: {"model": ErrorResponse}})
async def toggle_focus(request: Request, pin_id: str):
    container = _container(request)
    current = container.current
    # Unfocusing a pin that has since disappeared is allowed.
    if pin_id not in current.focus:
        current.get_pin(pin_id)
    state = container.apply(with_focus, focus_ops.toggle(current.focus, pin_id))
    return FocusResponse(focus=list(state.focus.ids), most_recent=focus_ops.most_recent(state.focus))


@router.get("/pins/{pin_id}/share-link", response_model=ShareLinkResponse, responses={404: {"model": ErrorResponse}})
async def share_link(request: Request, pin_id: str):
    _container(request).current.get_pin(pin_id)
    return ShareLinkResponse(url=focus_ops.build_share_link(settings.APP_BASE_URL, pin_id))


# ----------------------------------------------------------------------
# Property feed
# ----------------------------------------------------------------------
@router.post("/feed/refresh", response_model=FeedRefreshResponse, responses={503: {"model": ErrorResponse}})
async def refresh_property_feed(request: Request):
    client = request.app.state.feed_client
    if client is None:
        raise IOFailureError("No property feed is configured.")
    snapshot = await refresh_feed(_container(request), client)
    return FeedRefreshResponse(
        properties=snapshot.property_count,
        external_pins=len(snapshot.pins),
        index_keys=len(snapshot.index),
    )
