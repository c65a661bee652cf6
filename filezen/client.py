"""
FileZen client facade.

This is the main entry point for users of the library. It wires the HTTP
client and the services together and exposes path-based helpers on top of
them.
"""

import asyncio
from collections.abc import Mapping
from datetime import date
from pathlib import Path
from typing import Self

import httpx
import structlog

from filezen.api.http_client import AsyncHttpClient
from filezen.config import FileZenConfig
from filezen.exceptions import (
    FileNotFoundInFolderError,
    FolderNotFoundError,
    StateError,
    UploadNotAllowedError,
)
from filezen.models.delivery import DeliveryRequest
from filezen.models.session import ServerInfo, SessionToken
from filezen.models.sync import SyncReport
from filezen.models.transfer import TransferRequest, UploadResult
from filezen.models.tree import DirectoryTree, FolderNode, split_folder_path
from filezen.services.admin_service import AdminService
from filezen.services.delivery_service import DeliveryService
from filezen.services.session_service import SessionManager
from filezen.services.sync_service import SyncService
from filezen.services.transfer_service import TransferEngine
from filezen.services.tree_service import DirectoryTreeCache

logger = structlog.get_logger(__name__)


class FileZenClient:
    """
    Async client for FileZen.

    Example:
        ```python
        async with FileZenClient(FileZenConfig(url="https://fz.example.com")) as client:
            await client.login("user", "password")

            print(client.tree.format_tree())

            await client.upload(Path("report.pdf"), "Sales/Reports")
            await client.download_file("Sales/Reports", "report.pdf", Path("copy.pdf"))
        ```

    Args:
        config: Client configuration. Uses defaults if not provided.
        transport: Optional httpx transport for testing (mock transport).
    """

    def __init__(
        self,
        config: FileZenConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or FileZenConfig()
        self._transport = transport

        self._tree_cache = DirectoryTreeCache()
        self._http: AsyncHttpClient | None = None
        self._session: SessionManager | None = None
        self._transfer: TransferEngine | None = None
        self._delivery: DeliveryService | None = None
        self._admin: AdminService | None = None
        self._sync: SyncService | None = None

        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def __aenter__(self) -> Self:
        await self._ensure_initialized()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        await self.close()

    async def _ensure_initialized(self) -> None:
        """Ensure all components are initialized."""
        async with self._init_lock:
            if self._initialized:
                return

            self._http = AsyncHttpClient(self._config, transport=self._transport)
            await self._http.__aenter__()

            self._session = SessionManager(self._http, self._tree_cache)
            self._transfer = TransferEngine(
                self._http, self._session, self._tree_cache, self._config
            )
            self._delivery = DeliveryService(self._http, self._session, self._config)
            self._admin = AdminService(self._http, self._session, self._config)
            self._sync = SyncService(self._session, self._tree_cache, self._transfer)

            self._initialized = True
            logger.debug("Client initialized")

    async def close(self) -> None:
        """Logout if needed, then close the client and release resources."""
        async with self._init_lock:
            if self._session and self._session.is_authenticated:
                await self._session.logout()

            if self._http:
                await self._http.__aexit__(None, None, None)
                self._http = None

            self._session = None
            self._transfer = None
            self._delivery = None
            self._admin = None
            self._sync = None
            self._tree_cache.clear()
            self._initialized = False
            logger.debug("Client closed")

    # Session

    async def login(self, user_id: str, password: str, *, url: str | None = None) -> SessionToken:
        """
        Login and fetch the first tree snapshot.

        Args:
            user_id: FileZen user ID.
            password: Account password.
            url: Server base URL, overriding the configured one.

        Raises:
            AuthenticationError: If credentials are missing or rejected.
            TransportError: If the server cannot be reached.
        """
        await self._ensure_initialized()
        if self._session is None:
            raise RuntimeError("Client not initialized")
        return await self._session.login(user_id, password, url=url)

    async def logout(self) -> None:
        """Logout and clear session."""
        if self._session:
            await self._session.logout()

    async def reload(self) -> SessionToken:
        """Refresh the tree snapshot and the session token."""
        return await self._require_session().reload()

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None and self._session.is_authenticated

    @property
    def server_info(self) -> ServerInfo:
        if self._session is None:
            return ServerInfo()
        return self._session.server_info

    # Tree lookups

    @property
    def tree(self) -> DirectoryTree:
        """The last tree snapshot."""
        return self._tree_cache.tree

    def find_folder(self, path: str) -> FolderNode:
        """Find a folder by "Project/Folder" path; empty FolderNode if absent."""
        return self._tree_cache.find_folder(path)

    def find_file(self, project: str, folder: str, name: str) -> str:
        """Find a file key; "" if absent."""
        return self._tree_cache.find_file(project, folder, name)

    def can_upload(self, path: str, name: str) -> bool:
        return self._tree_cache.can_upload(path, name)

    # Transfers

    async def upload(
        self,
        local_path: Path | str,
        folder_path: str,
        *,
        display_name: str = "",
        comment: str = "",
        notify_to: str = "",
        notify_events: str = "",
    ) -> UploadResult:
        """
        Upload a file into a folder addressed by path.

        The tree is reloaded first if it is stale.

        Args:
            local_path: File to upload.
            folder_path: "Project/Folder" destination.
            display_name: Name on the server; defaults to the file's name.
            comment: Description stored with the file.
            notify_to: Notification recipients.
            notify_events: Notification events.

        Raises:
            FolderNotFoundError: If the folder is not in the tree.
            UploadNotAllowedError: If the name collides or the folder is read-only.
        """
        session = self._require_session()
        if self._tree_cache.is_stale:
            await session.reload()

        local_path = Path(local_path)
        name = display_name or local_path.name
        folder = self._tree_cache.find_folder(folder_path)
        if not folder.exists:
            msg = f"Folder not found: {folder_path}"
            raise FolderNotFoundError(msg, path=folder_path)
        if not self._tree_cache.can_upload(folder_path, name):
            msg = f"Upload not allowed: {name}"
            raise UploadNotAllowedError(msg, path=folder_path)

        return await self.upload_to_folder(
            local_path,
            folder.folder_id,
            display_name=name,
            comment=comment,
            notify_to=notify_to,
            notify_events=notify_events,
        )

    async def upload_to_folder(
        self,
        local_path: Path | str,
        folder_id: str,
        *,
        display_name: str = "",
        comment: str = "",
        notify_to: str = "",
        notify_events: str = "",
    ) -> UploadResult:
        """Upload a file into a folder addressed by ID, without tree checks."""
        self._require_session()
        if self._transfer is None:
            raise RuntimeError("Client not initialized")
        return await self._transfer.upload(
            TransferRequest(
                local_path=Path(local_path),
                folder_id=folder_id,
                display_name=display_name,
                comment=comment,
                notify_to=notify_to,
                notify_events=notify_events,
            )
        )

    async def download(self, key: str, destination: Path | str) -> Path:
        """
        Download a file by key and save to disk.

        Raises:
            EnvelopeError: If the server answers with an error envelope.
        """
        self._require_session()
        if self._transfer is None:
            raise RuntimeError("Client not initialized")
        return await self._transfer.download(key, Path(destination))

    async def download_file(self, folder_path: str, name: str, destination: Path | str) -> Path:
        """
        Download a file addressed by folder path and name.

        Raises:
            FileNotFoundInFolderError: If no such file is in the tree.
        """
        self._require_session()
        project, folder = split_folder_path(folder_path)
        if not (key := self._tree_cache.find_file(project, folder, name)):
            msg = f"File not found: {name}"
            raise FileNotFoundInFolderError(msg, path=folder_path)
        return await self.download(key, destination)

    async def delete_file(self, key: str) -> None:
        self._require_session()
        if self._transfer is None:
            raise RuntimeError("Client not initialized")
        await self._transfer.delete(key)

    # Delivery

    async def send_delivery(self, request: DeliveryRequest) -> None:
        self._require_session()
        if self._delivery is None:
            raise RuntimeError("Client not initialized")
        await self._delivery.send(request)

    async def send_delivery_conf(self, path: Path | str) -> None:
        """Send a delivery described by a ``key:value`` description file."""
        self._require_session()
        if self._delivery is None:
            raise RuntimeError("Client not initialized")
        await self._delivery.send_conf(Path(path))

    # Administration

    async def export_csv(self, fields: Mapping[str, str], destination: Path | str) -> Path:
        return await self._require_admin().export_csv(fields, Path(destination))

    async def import_csv(
        self, fields: Mapping[str, str], source: Path | str, file_field: str = "filename"
    ) -> None:
        await self._require_admin().import_csv(fields, Path(source), file_field)

    async def admin_export(
        self,
        mode: str,
        destination: Path | str,
        *,
        start: date | None = None,
        end: date | None = None,
    ) -> Path:
        """
        Export settings or logs by mode name.

        Raises:
            InvalidModeError: If the mode is unknown.
        """
        return await self._require_admin().admin_export(
            mode, Path(destination), start=start, end=end
        )

    async def admin_import(self, mode: str, source: Path | str) -> None:
        await self._require_admin().admin_import(mode, Path(source))

    async def mb_admin_export(self, mode: str, destination: Path | str, *, uid: str = "") -> Path:
        return await self._require_admin().mb_admin_export(mode, Path(destination), uid=uid)

    async def mb_admin_import(self, mode: str, source: Path | str, *, uid: str = "") -> None:
        await self._require_admin().mb_admin_import(mode, Path(source), uid=uid)

    # Sync

    async def sync_folder(
        self,
        local_root: Path | str,
        *,
        download_path: str = "",
        upload_path: str = "",
        notify_to: str = "",
        notify_events: str = "",
    ) -> SyncReport:
        """
        Download new files from one folder and upload local entries to another.

        See SyncService.sync for the local directory layout.
        """
        self._require_session()
        if self._sync is None:
            raise RuntimeError("Client not initialized")
        return await self._sync.sync(
            Path(local_root),
            download_path=download_path,
            upload_path=upload_path,
            notify_to=notify_to,
            notify_events=notify_events,
        )

    def _require_session(self) -> SessionManager:
        if self._session is None or not self._session.is_authenticated:
            msg = "Not logged in. Call login() first."
            raise StateError(msg)
        return self._session

    def _require_admin(self) -> AdminService:
        self._require_session()
        if self._admin is None:
            raise RuntimeError("Client not initialized")
        return self._admin
