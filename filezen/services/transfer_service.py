"""
Transfer service for FileZen.

Handles single-shot and chunked uploads, downloads and deletes.
"""

import asyncio
import hashlib
from pathlib import Path
from typing import BinaryIO

import httpx
import structlog

from filezen.api.endpoints.files import (
    commit_upload,
    delete_file,
    download_file,
    upload_chunk,
    upload_file,
)
from filezen.api.envelope import check_envelope
from filezen.api.http_client import AsyncHttpClient
from filezen.config import FileZenConfig
from filezen.exceptions import FileZenError, ProtocolMismatchError
from filezen.models.session import SessionToken
from filezen.models.transfer import (
    ChunkPlan,
    TransferRequest,
    UploadResult,
    UploadState,
    UploadStrategy,
)
from filezen.services.session_service import SessionManager
from filezen.services.tree_service import DirectoryTreeCache

logger = structlog.get_logger(__name__)

_HASH_BLOCK_SIZE = 64 * 1024


def select_strategy(size: int, chunk_size: int) -> UploadStrategy:
    """Files up to ``chunk_size`` bytes go in one request."""
    if size <= chunk_size:
        return UploadStrategy.SINGLE_SHOT
    return UploadStrategy.CHUNKED


async def save_response(response: httpx.Response, destination: Path) -> None:
    """
    Stream a response body to ``destination``.

    The body is written to ``<destination>.part`` and renamed on completion;
    the partial file is removed if anything fails.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    partial = destination.with_name(destination.name + ".part")
    try:
        with partial.open("wb") as f:
            async for chunk in response.aiter_bytes():
                f.write(chunk)
        partial.replace(destination)
    except BaseException:
        partial.unlink(missing_ok=True)
        raise


def build_file_comment(path: Path) -> str:
    """
    Describe a local file for the upload comment.

    Returns:
        "OrgPath/Size/SHA1" lines; "" if the file cannot be stat'ed, and
        without the SHA1 line if it cannot be read.
    """
    try:
        size = path.stat().st_size
    except OSError:
        return ""
    comment = f"OrgPath: {path}\nSize: {size}\n"
    digest = hashlib.sha1()
    try:
        with path.open("rb") as f:
            while block := f.read(_HASH_BLOCK_SIZE):
                digest.update(block)
    except OSError:
        return comment
    return comment + f"SHA1: {digest.hexdigest()}\n"


class TransferEngine:
    """
    Moves file content between the local disk and project folders.

    Every operation holds the session for its whole duration; a chunked
    upload therefore sends its chunks and its commit back to back.
    Nothing is retried: after a failure, reload the session before trying
    again.
    """

    def __init__(
        self,
        http: AsyncHttpClient,
        session: SessionManager,
        tree_cache: DirectoryTreeCache,
        config: FileZenConfig,
    ) -> None:
        """
        Args:
            http: Async HTTP client.
            session: Session providing and rotating the token.
            tree_cache: Tree cache invalidated by mutating operations.
            config: Client configuration (chunk size).
        """
        self._http = http
        self._session = session
        self._tree = tree_cache
        self._config = config

    async def upload(self, request: TransferRequest) -> UploadResult:
        """
        Upload a file, choosing single-shot or chunked transfer by size.

        Args:
            request: Upload description.

        Returns:
            Result of the committed upload.

        Raises:
            OSError: If the local file cannot be read.
            TransportError: If a request fails.
            EnvelopeError: If the server rejects the upload or commit.
            StateError: If not logged in.
        """
        size = request.local_path.stat().st_size
        strategy = select_strategy(size, self._config.chunk_size)
        state = UploadState.SELECTING
        logger.info(
            "Uploading file",
            name=request.registered_name,
            size=size,
            strategy=strategy,
        )

        async with self._session.exclusive() as token:
            try:
                if strategy == UploadStrategy.SINGLE_SHOT:
                    state = UploadState.SINGLE_SHOT
                    content = await asyncio.to_thread(request.local_path.read_bytes)
                    if len(content) != size:
                        msg = f"File changed during upload: {request.local_path}"
                        raise FileZenError(msg)
                    envelope = await upload_file(self._http, token, request, content)
                    self._session.apply(envelope)
                    result = UploadResult(
                        state=UploadState.COMMITTED,
                        strategy=strategy,
                        display_name=request.registered_name,
                        size=size,
                    )
                else:
                    plan = ChunkPlan.create(size, self._config.chunk_size)
                    state = UploadState.CHUNKING
                    await self._send_chunks(token, request, plan)
                    state = UploadState.COMMITTING
                    envelope = await commit_upload(
                        self._http, token, request, plan.transfer_token
                    )
                    self._session.apply(envelope)
                    result = UploadResult(
                        state=UploadState.COMMITTED,
                        strategy=strategy,
                        display_name=request.registered_name,
                        size=size,
                        chunk_count=plan.chunk_count,
                        transfer_token=plan.transfer_token,
                    )
            except Exception as e:
                logger.warning(
                    "Upload failed",
                    name=request.registered_name,
                    state=state,
                    next_state=UploadState.FAILED,
                    error_type=type(e).__name__,
                )
                raise
            finally:
                self._tree.invalidate()

        logger.info("Upload committed", name=result.display_name, chunks=result.chunk_count)
        return result

    async def _send_chunks(
        self, token: SessionToken, request: TransferRequest, plan: ChunkPlan
    ) -> None:
        with request.local_path.open("rb") as f:
            for index, offset, length in plan.chunks():
                chunk = await self._read_chunk(f, offset, length)
                if len(chunk) != length:
                    msg = f"File changed during upload: {request.local_path}"
                    raise FileZenError(msg, chunk=index)
                logger.debug("Sending chunk", index=index, count=plan.chunk_count, size=length)
                await upload_chunk(
                    self._http,
                    token,
                    folder_id=request.folder_id,
                    transfer_token=plan.transfer_token,
                    chunk=chunk,
                    index=index,
                    count=plan.chunk_count,
                )

    @staticmethod
    async def _read_chunk(f: BinaryIO, offset: int, length: int) -> bytes:
        def _read() -> bytes:
            f.seek(offset)
            return f.read(length)

        return await asyncio.to_thread(_read)

    async def download(self, key: str, destination: Path) -> Path:
        """
        Download a file by key and save it to disk.

        A response without a content length is a status envelope, not file
        content; it is decoded and no destination file is created.

        Args:
            key: File key from the tree.
            destination: Local file path to save to.

        Returns:
            The destination path.

        Raises:
            EnvelopeError: If the server reports an error (e.g. expired key).
            ProtocolMismatchError: If the server sent an OK envelope instead of content.
            TransportError: If the request fails or the status is an error.
        """
        logger.debug("Downloading file", destination=str(destination))
        async with self._session.exclusive() as token:
            async with download_file(self._http, token, key) as response:
                if "Content-Length" not in response.headers:
                    await response.aread()
                    envelope = check_envelope(
                        self._http.parse_body(response, operation="download"),
                        operation="download",
                    )
                    self._session.apply(envelope)
                    msg = "Download failed: server returned a status envelope instead of file content"
                    raise ProtocolMismatchError(
                        msg, operation="download", status_code=response.status_code
                    )
                self._http.raise_for_status(response, operation="download")
                await save_response(response, destination)

        logger.info("File saved", destination=str(destination))
        return destination

    async def delete(self, key: str) -> None:
        """
        Delete a file by key.

        Raises:
            EnvelopeError: If the server rejects the delete.
            TransportError: If the request fails.
        """
        async with self._session.exclusive() as token:
            try:
                envelope = await delete_file(self._http, token, key)
                self._session.apply(envelope)
            finally:
                self._tree.invalidate()
        logger.info("File deleted")
