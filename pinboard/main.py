# pinboard/main.py
# Application factory: wires the state container, pin store, feed and auth
# clients, and runs the two independent startup loads.

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import logging
import uuid

# Local imports
from pinboard.core.config import settings
from pinboard.core.errors import (
    AuthenticationError,
    InvalidFormatError,
    IOFailureError,
    NotFoundError,
    PinboardError,
)
from pinboard.core.middleware import AuthGateMiddleware
from pinboard.api.routes import router as api_router
from pinboard.logging import configure_logging
from pinboard.middleware.logging import LoggingMiddleware
from pinboard.models.dto import ErrorResponse
from pinboard.services.auth_service import AuthService
from pinboard.services.feed_client import PropertyFeedClient
from pinboard.services.i18n import get_message, language_from_header
from pinboard.services.pin_store import PinStore, create_pin_store
from pinboard.services.state import StateContainer
from pinboard.services.sync import initial_load

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidFormatError: status.HTTP_400_BAD_REQUEST,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    IOFailureError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def create_app(
    pin_store: Optional[PinStore] = None,
    feed_client: Optional[PropertyFeedClient] = None,
    auth_service: Optional[AuthService] = None,
    load_on_startup: bool = True,
) -> FastAPI:
    """Build the app. Collaborators default to the ones configured in settings."""
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Application startup: v{settings.VERSION}")
        app.state.container = StateContainer()
        app.state.pin_store = pin_store if pin_store is not None else create_pin_store()
        app.state.feed_client = feed_client if feed_client is not None else PropertyFeedClient()
        app.state.auth_service = auth_service if auth_service is not None else AuthService()
        app.state.auth_service.check_secret(settings.ENV)

        if load_on_startup:
            await initial_load(app.state.container, app.state.pin_store, app.state.feed_client)
            current = app.state.container.current
            logger.info(f"Startup loads finished: {len(current.pins)} pins, feed_loaded={current.feed_loaded}")

        yield

        logger.info("Application shutdown: Cleaning up resources.")
        close = getattr(app.state.pin_store, "close", None)
        if close is not None:
            await close()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=settings.BRIEF_DESCRIPTION,
        lifespan=lifespan,
    )

    # The last middleware added runs first, so requests get an id before the auth check.
    app.add_middleware(AuthGateMiddleware)
    app.add_middleware(LoggingMiddleware)

    app.include_router(api_router, prefix="/api")

    @app.get("/health", status_code=status.HTTP_200_OK)
    async def health_check(request: Request):
        current = request.app.state.container.current
        return {
            "status": "ok",
            "pins": len(current.pins),
            "pins_loaded": current.pins_loaded,
            "feed_loaded": current.feed_loaded,
        }

    @app.exception_handler(PinboardError)
    async def pinboard_error_handler(request: Request, exc: PinboardError):
        status_code = next(
            (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)),
            status.HTTP_400_BAD_REQUEST,
        )
        lang = language_from_header(request.headers.get("accept-language", ""))
        # Auth failures carry their own user-facing message; the rest use the catalogue.
        detail = exc.detail if isinstance(exc, AuthenticationError) and exc.detail else get_message(exc.code, lang)
        logger.info(f"{exc.code} on {request.url.path}: {exc.detail}")
        return JSONResponse(
            status_code=status_code,
            content={"detail": ErrorResponse(error=exc.code, detail=detail).model_dump()},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        error_id = str(uuid.uuid4())
        logger.error(f"Unhandled exception (ID: {error_id}): {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": {
                    "error": "INTERNAL_SERVER_ERROR",
                    "detail": "An unexpected error occurred. Please report this error ID.",
                    "error_id": error_id
                }
            }
        )

    return app


app = create_app()
