"""
Folder sync service for FileZen.

Mirrors one project folder into a local directory and pushes local entries
into another.
"""

import asyncio
from pathlib import Path

import structlog

from filezen.archive import make_zip
from filezen.exceptions import FileZenError, FolderNotFoundError, UploadNotAllowedError
from filezen.models.sync import SyncReport
from filezen.models.transfer import TransferRequest
from filezen.models.tree import FolderNode
from filezen.services.session_service import SessionManager
from filezen.services.transfer_service import TransferEngine, build_file_comment
from filezen.services.tree_service import DirectoryTreeCache

logger = structlog.get_logger(__name__)

DOWNLOAD_DIR = "Download"
UPLOAD_DIR = "Upload"
TEMP_DIR = "fztmp"


def _is_plain_name(name: str, directory: Path) -> bool:
    """True if ``name`` is a single path component that stays inside ``directory``."""
    if name in ("", ".", "..") or Path(name).name != name or "\\" in name:
        return False
    root = directory.resolve()
    return (root / name).resolve().parent == root


class SyncService:
    """
    Service for one-shot folder synchronisation.

    Layout of the local root:
    - ``Download/`` receives every server file not yet present locally.
    - ``Upload/`` holds entries to push; directories are zipped first.
    - ``fztmp/`` holds those temporary archives while they are sent.

    Nothing is overwritten or deleted on either side. A failed transfer is
    recorded, the session is reloaded, and the run continues.
    """

    def __init__(
        self,
        session: SessionManager,
        tree_cache: DirectoryTreeCache,
        transfer: TransferEngine,
    ) -> None:
        self._session = session
        self._tree = tree_cache
        self._transfer = transfer

    async def sync(
        self,
        local_root: Path,
        *,
        download_path: str = "",
        upload_path: str = "",
        notify_to: str = "",
        notify_events: str = "",
    ) -> SyncReport:
        """
        Run one sync pass.

        Args:
            local_root: Local directory holding Download/, Upload/ and fztmp/.
            download_path: "Project/Folder" to download from; skipped if empty.
            upload_path: "Project/Folder" to upload to; skipped if empty.
            notify_to: Notification recipients for uploads.
            notify_events: Notification events for uploads.

        Returns:
            What was transferred, skipped or failed.

        Raises:
            ValueError: If neither folder path is given.
            FolderNotFoundError: If a folder path is not in the tree.
            UploadNotAllowedError: If the upload folder is not writable.
            StateError: If not logged in.
        """
        if not download_path and not upload_path:
            msg = "No folder to sync"
            raise ValueError(msg)

        for name in (DOWNLOAD_DIR, UPLOAD_DIR, TEMP_DIR):
            (local_root / name).mkdir(parents=True, exist_ok=True)

        logger.info("Starting sync", local_root=str(local_root))
        report = SyncReport()
        await self._refresh()
        if download_path:
            await self._download_folder(download_path, local_root / DOWNLOAD_DIR, report)
        if upload_path:
            await self._upload_entries(
                upload_path,
                local_root / UPLOAD_DIR,
                local_root / TEMP_DIR,
                notify_to,
                notify_events,
                report,
            )
        logger.info(
            "Sync finished",
            downloaded=len(report.downloaded),
            uploaded=len(report.uploaded),
            failed=len(report.failed),
            skipped=len(report.skipped),
        )
        return report

    async def _refresh(self) -> None:
        if self._tree.is_stale:
            await self._session.reload()

    def _require_folder(self, path: str, purpose: str) -> FolderNode:
        folder = self._tree.find_folder(path)
        if not folder.exists:
            msg = f"{purpose} folder not found: {path}"
            raise FolderNotFoundError(msg, path=path)
        return folder

    async def _download_folder(self, path: str, target: Path, report: SyncReport) -> None:
        folder = self._require_folder(path, "Download")
        for file in folder.files:
            if not file.key:
                continue
            if not _is_plain_name(file.name, target):
                logger.warning("Refusing unsafe file name", name=file.name)
                report.failed.append(file.name)
                continue
            local = target / file.name
            if local.exists():
                if local.stat().st_size != file.size_bytes:
                    logger.warning("File size mismatch", name=file.name, remote_size=file.size)
                report.skipped.append(file.name)
                continue
            try:
                await self._transfer.download(file.key, local)
            except (FileZenError, OSError) as e:
                logger.warning("Download failed", name=file.name, error_type=type(e).__name__)
                report.failed.append(file.name)
                await self._session.reload()
                continue
            report.downloaded.append(file.name)

    async def _upload_entries(
        self,
        path: str,
        source: Path,
        temp: Path,
        notify_to: str,
        notify_events: str,
        report: SyncReport,
    ) -> None:
        self._require_folder(path, "Upload")
        if not self._tree.can_upload(path, ""):
            msg = f"No write permission: {path}"
            raise UploadNotAllowedError(msg, path=path)

        for entry in sorted(source.iterdir()):
            name = f"{entry.name}.zip" if entry.is_dir() else entry.name
            await self._refresh()
            if not self._tree.can_upload(path, name):
                report.skipped.append(name)
                continue
            folder = self._require_folder(path, "Upload")
            try:
                await self._upload_entry(entry, name, folder, temp, notify_to, notify_events)
            except (FileZenError, OSError) as e:
                logger.warning("Upload failed", name=name, error_type=type(e).__name__)
                report.failed.append(name)
                await self._session.reload()
                continue
            report.uploaded.append(name)

    async def _upload_entry(
        self,
        entry: Path,
        name: str,
        folder: FolderNode,
        temp: Path,
        notify_to: str,
        notify_events: str,
    ) -> None:
        archive = None
        if entry.is_dir():
            archive = await asyncio.to_thread(make_zip, entry, temp, name)
        local = archive or entry
        try:
            await self._transfer.upload(
                TransferRequest(
                    local_path=local,
                    folder_id=folder.folder_id,
                    display_name=name,
                    comment=build_file_comment(local.resolve()),
                    notify_to=notify_to,
                    notify_events=notify_events,
                )
            )
        finally:
            if archive is not None:
                logger.debug("Removing temporary archive", archive=str(archive))
                archive.unlink(missing_ok=True)
