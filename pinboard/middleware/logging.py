# pinboard/middleware/logging.py
# One structured log line per request, tagged with a request id that is also
# returned to the client (and reused when a proxy already assigned one).

import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from structlog.contextvars import bind_contextvars, clear_contextvars

from pinboard.utils.security import get_client_ip

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = {"/health"}

log = structlog.get_logger()


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        clear_contextvars()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        bind_contextvars(
            request_id=request_id,
            http_method=request.method,
            path=request.url.path,
            client_ip=get_client_ip(request),
            share_view=bool(request.query_params.get("share")),
        )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            log.exception("http_request_failed", elapsed_ms=_elapsed_ms(started))
            raise

        fields = dict(
            status_code=response.status_code,
            elapsed_ms=_elapsed_ms(started),
            username=getattr(request.state, "username", None),
        )
        if response.status_code >= 500:
            log.warning("http_request", **fields)
        elif request.url.path in QUIET_PATHS:
            log.debug("http_request", **fields)
        else:
            log.info("http_request", **fields)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
