# pinboard/utils/security.py
# Token signing for locally authenticated staff, and request credential helpers

import hashlib
import hmac
from typing import Optional

from fastapi import Request

from pinboard.core.config import settings


def _signature(username: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), username.encode("utf-8"), hashlib.sha256).hexdigest()


def sign_token(username: str, secret: Optional[str] = None) -> str:
    """Issue ``<username>.<hmac>``. The last dot separates the signature."""
    return f"{username}.{_signature(username, secret or settings.AUTH_SECRET)}"


def verify_token(token: Optional[str], secret: Optional[str] = None) -> Optional[str]:
    """Return the username a token was issued for, or None if it is not ours."""
    if not token or "." not in token:
        return None
    username, _, signature = token.rpartition(".")
    if not username:
        return None
    expected = _signature(username, secret or settings.AUTH_SECRET)
    if not hmac.compare_digest(expected, signature):
        return None
    return username


def get_bearer_token(request: Request) -> Optional[str]:
    """
    Extracts the token from ``Authorization: Bearer <token>``, falling back to
    the ``pinboard_token`` cookie set by the login page.
    """
    header = request.headers.get("authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get("pinboard_token")


def get_client_ip(request: Request) -> str:
    """
    Extracts the client's IP address from the request.
    Assumes a standard proxy setup where the client IP is in 'x-forwarded-for'.
    """
    x_forwarded_for = request.headers.get("x-forwarded-for")
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.client.host if request.client else "unknown_ip"
