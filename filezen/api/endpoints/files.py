"""Project file endpoints (upload, chunked upload, download, delete)."""

from contextlib import AbstractAsyncContextManager

import httpx

from filezen.api.http_client import CGI_PATH, AsyncHttpClient
from filezen.models.envelope import Envelope
from filezen.models.session import SessionToken
from filezen.models.transfer import TransferRequest

OCTET_STREAM = "application/octet-stream"


async def upload_file(
    http: AsyncHttpClient,
    token: SessionToken,
    request: TransferRequest,
    content: bytes,
) -> Envelope:
    """
    Upload a whole file in one multipart request.

    Args:
        http: Configured async HTTP client.
        token: Current session token.
        request: Upload description.
        content: The whole file content.

    Returns:
        Envelope of the committed upload.
    """
    return await http.request_envelope(
        CGI_PATH,
        operation="upload",
        data={
            "action": "Mainmenu_upload",
            "sub_action": "do_upload",
            "respmode": "xml",
            "valid_key": token.valid_key,
            **request.form_fields(),
        },
        files={"filename": (request.filename, content, OCTET_STREAM)},
        token=token,
    )


async def upload_chunk(
    http: AsyncHttpClient,
    token: SessionToken,
    *,
    folder_id: str,
    transfer_token: str,
    chunk: bytes,
    index: int,
    count: int,
) -> None:
    """
    Send one chunk of a chunked upload.

    The chunk response carries no envelope; only the HTTP status is checked.

    Args:
        http: Configured async HTTP client.
        token: Current session token.
        folder_id: Destination folder identifier.
        transfer_token: Identifier shared by all chunks of the upload.
        chunk: Chunk bytes.
        index: Chunk number, starting at 1.
        count: Total number of chunks.

    Raises:
        TransportError: If the request fails or the status is not 2xx.
    """
    response = await http.request(
        "POST",
        CGI_PATH,
        operation="upload chunk",
        data={
            "fr": transfer_token,
            "valid_key": token.valid_key,
            "action": "Mainmenu_upload",
            "sub_action": "plupload",
            "ukey": token.session_id + folder_id,
            "mode": "PRJ",
            "chunk": str(index),
            "chunks": str(count),
        },
        files={"file": (f"{transfer_token}{folder_id}.tmp", chunk, OCTET_STREAM)},
        token=token,
    )
    http.raise_for_status(response, operation="upload chunk")


async def commit_upload(
    http: AsyncHttpClient,
    token: SessionToken,
    request: TransferRequest,
    transfer_token: str,
) -> Envelope:
    """
    Join previously sent chunks into one visible file.

    Returns:
        Envelope of the committed upload.
    """
    return await http.request_envelope(
        CGI_PATH,
        operation="commit upload",
        data={
            "respmode": "xml",
            "action": "Mainmenu_upload",
            "sub_action": "do_upload",
            "valid_key": token.valid_key,
            "filename": request.filename,
            "fr": transfer_token,
            **request.form_fields(),
        },
        token=token,
    )


def download_file(
    http: AsyncHttpClient, token: SessionToken, key: str
) -> AbstractAsyncContextManager[httpx.Response]:
    """
    Open a streaming download of a file.

    The body is either the file content or, when the response declares no
    content length, a status envelope.

    Returns:
        Async context manager yielding the streaming response.
    """
    return http.stream(
        "POST",
        CGI_PATH,
        operation="download",
        data={
            "respmode": "xml",
            "action": "Mainmenu_file",
            "sub_action": "download",
            "key": key,
            "valid_key": token.valid_key,
        },
        token=token,
    )


async def delete_file(http: AsyncHttpClient, token: SessionToken, key: str) -> Envelope:
    """Delete a file by key."""
    return await http.request_envelope(
        CGI_PATH,
        operation="delete",
        data={
            "respmode": "xml",
            "action": "Mainmenu_file",
            "sub_action": "delete_file",
            "key": key,
            "valid_key": token.valid_key,
        },
        token=token,
    )
