"""
Secondary delivery service for FileZen.

Sends one file (or a zipped directory) to external recipients.
"""

import asyncio
import tempfile
from pathlib import Path

import structlog

from filezen.api.endpoints.delivery import send_delivery
from filezen.api.http_client import AsyncHttpClient
from filezen.archive import make_zip
from filezen.config import MIB, FileZenConfig
from filezen.exceptions import FileTooLargeError
from filezen.models.delivery import DeliveryRequest
from filezen.services.session_service import SessionManager

logger = structlog.get_logger(__name__)


class DeliveryService:
    """Service for secondary deliveries."""

    def __init__(
        self, http: AsyncHttpClient, session: SessionManager, config: FileZenConfig
    ) -> None:
        self._http = http
        self._session = session
        self._config = config

    async def send(self, request: DeliveryRequest) -> None:
        """
        Send a delivery.

        A directory is zipped to a temporary archive, removed afterwards.

        Raises:
            OSError: If the file cannot be read or zipped.
            FileTooLargeError: If the file exceeds the delivery size limit.
            EnvelopeError: If the server rejects the delivery.
            TransportError: If the request fails.
        """
        if request.file.is_dir():
            with tempfile.TemporaryDirectory(prefix="filezen-") as tmp:
                archive = await asyncio.to_thread(make_zip, request.file, Path(tmp))
                await self._send_file(request, archive)
        else:
            await self._send_file(request, request.file)

    async def send_conf(self, path: Path) -> None:
        """
        Send a delivery described by a ``key:value`` description file.

        Raises:
            DeliveryError: If the description is incomplete or malformed.
        """
        await self.send(DeliveryRequest.from_conf(path))

    async def _send_file(self, request: DeliveryRequest, path: Path) -> None:
        size = path.stat().st_size
        limit = self._config.delivery_max_size
        if size > limit:
            msg = f"File size over {limit // MIB} MiB: {path.name}"
            raise FileTooLargeError(msg, size=size, limit=limit)

        logger.info(
            "Sending delivery",
            name=path.name,
            size=size,
            recipients=len(request.recipients),
        )
        async with self._session.exclusive() as token:
            with path.open("rb") as content:
                envelope = await send_delivery(self._http, token, request, path.name, content)
            self._session.apply(envelope)
        logger.info("Delivery sent", name=path.name)
