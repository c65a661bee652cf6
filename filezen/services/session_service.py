"""
Session service for FileZen.

Handles login, logout, reload and the rotating anti-forgery token.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from filezen.api.endpoints.session import login, logout, reload
from filezen.api.http_client import AsyncHttpClient
from filezen.exceptions import AuthenticationError, StateError
from filezen.models.envelope import Envelope
from filezen.models.session import ServerInfo, SessionToken
from filezen.services.tree_service import DirectoryTreeCache

logger = structlog.get_logger(__name__)


class SessionManager:
    """
    Owns the authenticated session.

    The current SessionToken is replaced, never mutated: every successful
    envelope response produces a new token carrying the rotated valid key,
    and that token is what the next request sends.

    Concurrency:
    - One operation at a time per session. ``exclusive()`` serialises callers;
      login, logout and reload take the same lock.
    - Separate SessionManager instances share nothing.
    """

    def __init__(self, http_client: AsyncHttpClient, tree_cache: DirectoryTreeCache) -> None:
        """
        Args:
            http_client: HTTP client for API requests.
            tree_cache: Cache receiving each tree snapshot.
        """
        self._http = http_client
        self._tree = tree_cache

        self._token: SessionToken | None = None
        self._server_info = ServerInfo()
        self._lock = asyncio.Lock()

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    @property
    def token(self) -> SessionToken:
        """
        The current token.

        Raises:
            StateError: If not logged in.
        """
        if self._token is None:
            msg = "Not logged in. Call login() first."
            raise StateError(msg)
        return self._token

    @property
    def server_info(self) -> ServerInfo:
        return self._server_info

    async def login(self, user_id: str, password: str, *, url: str | None = None) -> SessionToken:
        """
        Authenticate and store the session token and tree snapshot.

        Args:
            user_id: FileZen user ID.
            password: Account password.
            url: Server base URL; the configured one is used when omitted.

        Returns:
            The new session token.

        Raises:
            AuthenticationError: If credentials are empty or rejected.
            TransportError: If the request fails.
        """
        if (len(user_id) == 0) or (len(password) == 0):
            msg = "User ID and password required"
            raise AuthenticationError(msg)

        async with self._lock:
            if url:
                self._http.base_url = url
            logger.info("Logging in", url=self._http.base_url, user_id=user_id)
            try:
                token, envelope = await login(self._http, user_id, password)
            except Exception:
                self._clear_state()
                raise

            self._token = token
            self._apply(envelope)
            logger.info("Login successful", version=self._server_info.version)
            return self._token

    async def logout(self) -> None:
        """
        Logout and clear the session.

        Best effort: a failed logout request is logged, not raised.
        """
        logger.info("Logging out")

        async with self._lock:
            if self._token is not None:
                try:
                    await logout(self._http, self._token)
                except Exception as e:
                    logger.warning("Logout request failed", error_type=type(e).__name__, exc_info=e)
            self._clear_state()

    async def reload(self) -> SessionToken:
        """
        Re-fetch the tree snapshot and rotate the token.

        Call after any failed or uncertain operation before retrying.

        Returns:
            The rotated token.

        Raises:
            StateError: If not logged in.
            EnvelopeError: If the server rejects the reload.
            TransportError: If the request fails.
        """
        async with self.exclusive() as token:
            logger.debug("Reloading tree")
            envelope = await reload(self._http, token)
            return self.apply(envelope)

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[SessionToken]:
        """
        Hold the session for one operation.

        Yields:
            The token to send with the operation's first request.

        Raises:
            StateError: If not logged in.
        """
        async with self._lock:
            yield self.token

    def apply(self, envelope: Envelope) -> SessionToken:
        """
        Feed a successful envelope back into the session.

        Must be called while holding ``exclusive()``.

        Returns:
            The token to use for the next request.
        """
        if self._token is None:
            msg = "Not logged in. Call login() first."
            raise StateError(msg)
        return self._apply(envelope)

    def _apply(self, envelope: Envelope) -> SessionToken:
        self._token = self._token.rotate(envelope.valid_key)
        if envelope.tree is not None:
            self._tree.update(envelope.tree)
        if envelope.version is not None or envelope.user_mail_addr is not None:
            self._server_info = ServerInfo(
                system_mail_addr=envelope.system_mail_addr or "",
                user_mail_addr=envelope.user_mail_addr or "",
                version=envelope.version or "",
            )
        return self._token

    def _clear_state(self) -> None:
        """Forget the token, server info and tree snapshot."""
        self._token = None
        self._server_info = ServerInfo()
        self._tree.clear()
