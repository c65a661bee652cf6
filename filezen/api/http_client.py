"""
Async HTTP client for the FileZen CGI endpoints.

Provides a clean interface for posting form and multipart requests,
decoding status envelopes, and streaming raw bodies.
"""

import ssl
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any

import httpx
import structlog

from filezen.api.envelope import check_envelope, parse_envelope
from filezen.config import FileZenConfig
from filezen.exceptions import ProtocolMismatchError, TransportError
from filezen.models.envelope import Envelope
from filezen.models.session import SessionToken

logger = structlog.get_logger(__name__)

CGI_PATH = "/cgi-bin/index.cgi"
DELIVERY_CGI_PATH = "/mb/cgi-bin/index.cgi"

SENSITIVE_KEYS = frozenset(
    {
        "password",
        "password_retype",
        "valid_key",
        "ukey",
    }
)

# (filename, content, content type) as accepted by httpx
FilePart = tuple[str, Any] | tuple[str, Any, str]


def sanitize_for_log(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Remove sensitive fields from form data before logging.

    Args:
        data: Form fields that may contain secrets.

    Returns:
        Copy with sensitive values replaced by "***".
    """
    return {key: "***" if key in SENSITIVE_KEYS else value for key, value in data.items()}


def build_ssl_context(config: FileZenConfig) -> ssl.SSLContext:
    """
    Build the TLS context for server verification and the client certificate.

    Args:
        config: Client configuration.

    Returns:
        Configured SSL context.
    """
    context = ssl.create_default_context(
        cafile=str(config.ca_cert) if config.ca_cert is not None else None
    )
    if not config.verify_tls:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    if (cert := config.client_cert) is not None:
        context.load_cert_chain(
            certfile=str(cert.cert_file),
            keyfile=str(cert.key_file) if cert.key_file is not None else None,
            password=cert.password,
        )
    return context


def _op_title(operation: str) -> str:
    return operation.capitalize()


class AsyncHttpClient:
    """Async HTTP client for FileZen."""

    def __init__(
        self,
        config: FileZenConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            config: Client configuration.
            transport: Optional transport for testing (mock transport).
        """
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "AsyncHttpClient":
        self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.url,
                timeout=self._config.timeout,
                transport=self._transport,
                verify=build_ssl_context(self._config),
                headers={"User-Agent": self._config.user_agent},
                # The session cookie is sent explicitly from the SessionToken.
                cookies=CookieJar(policy=DefaultCookiePolicy(allowed_domains=[])),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is None:
            logger.debug("Client not open.")
            return
        await self._client.aclose()
        self._client = None

    @property
    def base_url(self) -> str:
        if self._client is None:
            return self._config.url
        return str(self._client.base_url)

    @base_url.setter
    def base_url(self, url: str) -> None:
        self._require_client().base_url = url

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "HTTP client not initialized. Use 'async with' first."
            raise RuntimeError(msg)
        return self._client

    @staticmethod
    def _headers(
        token: SessionToken | None, headers: Mapping[str, str] | None = None
    ) -> dict[str, str]:
        result = dict(headers or {})
        if token is not None:
            result["Cookie"] = token.cookie_header()
        return result

    async def request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        data: Mapping[str, str] | None = None,
        files: Mapping[str, FilePart] | None = None,
        token: SessionToken | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """
        Send a request and read the whole response.

        Redirects are never followed.

        Args:
            method: HTTP method.
            path: Path below the base URL (may carry a query string).
            operation: Operation name for logs and errors.
            data: Form fields; form-encoded, or multipart when files are given.
            files: Multipart file parts.
            token: Session token whose cookie is attached.
            headers: Extra headers.

        Returns:
            The response with its body loaded.

        Raises:
            TransportError: If the request fails at network level.
        """
        client = self._require_client()
        logger.debug(
            "Sending request",
            operation=operation,
            path=path,
            fields=sanitize_for_log(data or {}),
            files=sorted(files or ()),
        )
        try:
            response = await client.request(
                method,
                path,
                data=dict(data) if data is not None else None,
                files=dict(files) if files is not None else None,
                headers=self._headers(token, headers),
            )
        except httpx.HTTPError as e:
            msg = f"{_op_title(operation)} failed: {str(e) or type(e).__name__}"
            raise TransportError(msg, operation=operation) from e
        logger.debug("Received response", operation=operation, status=response.status_code)
        return response

    async def request_envelope(
        self,
        path: str,
        *,
        operation: str,
        data: Mapping[str, str],
        files: Mapping[str, FilePart] | None = None,
        token: SessionToken | None = None,
    ) -> Envelope:
        """
        POST a request answered by a status envelope.

        Returns:
            The successful envelope.

        Raises:
            TransportError: If the request fails at network level, or the body
                is not an envelope and the status is an error.
            ProtocolMismatchError: If a 2xx body is not an envelope.
            EnvelopeError: If the envelope reports a failure.
        """
        response = await self.request(
            "POST", path, operation=operation, data=data, files=files, token=token
        )
        return check_envelope(self.parse_body(response, operation=operation), operation=operation)

    @classmethod
    def parse_body(cls, response: httpx.Response, *, operation: str) -> Envelope:
        """
        Decode a loaded response body as an envelope.

        Raises:
            TransportError: If the body is not an envelope and the status is an error.
            ProtocolMismatchError: If the body is not an envelope.
        """
        try:
            return parse_envelope(
                response.content, operation=operation, status_code=response.status_code
            )
        except ProtocolMismatchError:
            cls.raise_for_status(response, operation=operation)
            raise

    @asynccontextmanager
    async def stream(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        data: Mapping[str, str] | None = None,
        token: SessionToken | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> AsyncIterator[httpx.Response]:
        """
        Stream a response body (downloads, CSV exports).

        Network errors raised while the body is consumed inside the
        ``async with`` block are also converted.

        Yields:
            The streaming response.

        Raises:
            TransportError: If the request fails at network level.
        """
        client = self._require_client()
        logger.debug(
            "Streaming request",
            operation=operation,
            path=path,
            fields=sanitize_for_log(data or {}),
        )
        try:
            async with client.stream(
                method,
                path,
                data=dict(data) if data is not None else None,
                headers=self._headers(token, headers),
            ) as response:
                yield response
        except httpx.HTTPError as e:
            msg = f"{_op_title(operation)} failed: {str(e) or type(e).__name__}"
            raise TransportError(msg, operation=operation) from e

    @staticmethod
    def raise_for_status(response: httpx.Response, *, operation: str) -> None:
        """
        Raise a TransportError for non-2xx responses of raw-body endpoints.
        """
        if response.is_success:
            return
        msg = f"{_op_title(operation)} failed: HTTP {response.status_code}"
        raise TransportError(msg, operation=operation)
