# pinboard/core/errors.py
"""Error taxonomy shared by the core and the API layer.

Every failure is local to the operation that raised it. The API layer maps the
``code`` of each error onto an ``ErrorResponse`` body and a user-facing message.
"""

from typing import Optional


class PinboardError(Exception):
    """Base class for all expected failures."""

    code = "PINBOARD_ERROR"

    def __init__(self, detail: str = "", *, source: Optional[str] = None):
        super().__init__(detail or self.code)
        self.detail = detail
        self.source = source


class InvalidFormatError(PinboardError):
    """Coordinate text could not be parsed."""

    code = "INVALID_FORMAT"


class NotFoundError(PinboardError):
    """A lookup missed. Enrichment treats this silently; the API maps it to 404."""

    code = "NOT_FOUND"


class IOFailureError(PinboardError):
    """A backing service (store, feed, auth) could not be reached or answered badly."""

    code = "IO_FAILURE"


class AuthenticationError(PinboardError):
    """Credentials were rejected."""

    code = "AUTHENTICATION_FAILED"
