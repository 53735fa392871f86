# pinboard/services/auth_service.py
"""Staff login.

Two modes: forward credentials to a remote login endpoint when
``AUTH_SERVICE_URL`` is configured, otherwise compare against the locally
configured staff account and issue an HMAC-signed token. Login state only
decides which view a client may see; it never touches pins or layout.
"""

import hmac
import logging
import time
from collections import OrderedDict
from typing import Optional, Tuple

import httpx
from pydantic import BaseModel

from pinboard.core.config import DEFAULT_AUTH_SECRET, settings
from pinboard.core.errors import AuthenticationError, IOFailureError
from pinboard.utils.security import sign_token, verify_token

logger = logging.getLogger(__name__)


class AuthResult(BaseModel):
    token: str
    username: str


class AuthService:
    def __init__(
        self,
        service_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        secret: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        token_ttl: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        self.service_url = service_url if service_url is not None else settings.AUTH_SERVICE_URL
        self.username = username if username is not None else settings.STAFF_USERNAME
        self.password = password if password is not None else settings.STAFF_PASSWORD
        self.secret = secret or settings.AUTH_SECRET
        self.timeout = settings.AUTH_TIMEOUT if timeout is None else timeout
        self.token_ttl = settings.REMOTE_TOKEN_TTL if token_ttl is None else token_ttl
        self.max_tokens = settings.REMOTE_TOKEN_LIMIT if max_tokens is None else max_tokens
        self._transport = transport
        # token -> (username, monotonic expiry), oldest login first.
        self._remote_tokens: "OrderedDict[str, Tuple[str, float]]" = OrderedDict()

    @property
    def local_enabled(self) -> bool:
        """Locally signed tokens are only honoured when local login is the active mode."""
        return bool(self.password) and not self.service_url

    def check_secret(self, env: str) -> None:
        """Refuse to run a production app that signs tokens with the stock secret."""
        if env.lower() == "production" and self.local_enabled and self.secret == DEFAULT_AUTH_SECRET:
            raise RuntimeError("AUTH_SECRET must be set when local login is enabled in production.")

    async def login(self, username: str, password: str) -> AuthResult:
        if not username or not password:
            raise AuthenticationError("Username and password are required.")
        if self.service_url:
            return await self._remote_login(username, password)
        return self._local_login(username, password)

    def _local_login(self, username: str, password: str) -> AuthResult:
        if not self.password:
            logger.warning("Local login attempted but STAFF_PASSWORD is not configured.")
            raise AuthenticationError("Login is not configured.")
        user_ok = hmac.compare_digest(username, self.username)
        password_ok = hmac.compare_digest(password, self.password)
        if not (user_ok and password_ok):
            logger.info(f"Rejected local login for {username!r}.")
            raise AuthenticationError("Invalid username or password.")
        return AuthResult(token=sign_token(username, self.secret), username=username)

    async def _remote_login(self, username: str, password: str) -> AuthResult:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.service_url, json={"username": username, "password": password}
                )
        except httpx.HTTPError as e:
            logger.error(f"Auth service unreachable: {e}")
            raise IOFailureError("Authentication service is unreachable.", source=self.service_url)

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.status_code in (400, 401, 403):
            raise AuthenticationError(body.get("error") or body.get("message") or "Invalid username or password.")
        if response.is_error:
            logger.error(f"Auth service returned status error: {response.status_code}")
            raise IOFailureError(f"Authentication service returned {response.status_code}.", source=self.service_url)

        token = body.get("token")
        if not token:
            raise AuthenticationError(body.get("error") or "Authentication service returned no token.")
        result = AuthResult(token=token, username=body.get("username") or username)
        self._remember(result)
        return result

    def _remember(self, result: AuthResult) -> None:
        self._remote_tokens.pop(result.token, None)
        self._remote_tokens[result.token] = (result.username, time.monotonic() + self.token_ttl)
        while len(self._remote_tokens) > self.max_tokens:
            self._remote_tokens.popitem(last=False)

    def _remote_user(self, token: str) -> Optional[str]:
        entry = self._remote_tokens.get(token)
        if entry is None:
            return None
        username, expires_at = entry
        if expires_at <= time.monotonic():
            del self._remote_tokens[token]
            return None
        return username

    def verify(self, token: Optional[str]) -> Optional[str]:
        """The username behind ``token``, or None.

        Remote tokens live in memory only, so a restart asks remote users to log in again.
        """
        if not token:
            return None
        if self.service_url:
            return self._remote_user(token)
        if not self.local_enabled:
            return None
        return verify_token(token, self.secret)
