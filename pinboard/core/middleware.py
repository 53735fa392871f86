from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from fastapi.responses import JSONResponse
from structlog.contextvars import bind_contextvars

from pinboard.models.dto import ErrorResponse
from pinboard.services.i18n import get_message, language_from_header
from pinboard.utils.security import get_bearer_token

class AuthGateMiddleware(BaseHTTPMiddleware):
    """
    Requires a staff token for everything except the public surface.
    Allowlist: /health, /api/auth/login, and share-mode reads of /api/pins.
    """
    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        share_read = (
            request.method == "GET"
            and path == "/api/pins"
            and bool(request.query_params.get("share"))
        )
        allowlisted = (
            share_read or
            not path.startswith("/api") or
            path.startswith("/api/auth/login")
        )
        if allowlisted:
            return await call_next(request)

        auth_service = getattr(request.app.state, "auth_service", None)
        username = auth_service.verify(get_bearer_token(request)) if auth_service else None
        if not username:
            lang = language_from_header(request.headers.get("accept-language", ""))
            return JSONResponse(
                status_code=401,
                content={"detail": ErrorResponse(
                    error="AUTH_REQUIRED",
                    detail=get_message("AUTH_REQUIRED", lang),
                ).model_dump()},
            )
        request.state.username = username
        bind_contextvars(username=username)
        return await call_next(request)
