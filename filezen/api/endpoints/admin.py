"""Administrative CSV export/import endpoints."""

from collections.abc import Mapping
from contextlib import AbstractAsyncContextManager
from typing import BinaryIO

import httpx
import structlog

from filezen.api.endpoints.files import OCTET_STREAM
from filezen.api.http_client import CGI_PATH, DELIVERY_CGI_PATH, AsyncHttpClient
from filezen.exceptions import ProtocolMismatchError
from filezen.models.envelope import Envelope
from filezen.models.session import SessionToken

logger = structlog.get_logger(__name__)

HISTORY_PATH = f"{DELIVERY_CGI_PATH}/admin/history/"

# The delivery import pages report failures only by redirecting back to the
# import form or by rendering one of these messages.
IMPORT_FAILURE_REDIRECT = "/import"
IMPORT_FAILURE_MARKERS = {
    "アドレス帳ファイルが正しくありません": "invalid format",
    "ユーザーIDの指定が正しくありません。": "invalid uid",
}


def export_csv(
    http: AsyncHttpClient, token: SessionToken, fields: Mapping[str, str]
) -> AbstractAsyncContextManager[httpx.Response]:
    """
    Open a streaming CSV export from the main CGI endpoint.

    Args:
        http: Configured async HTTP client.
        token: Current session token.
        fields: Export selector fields (action, sub_action, filters).

    Returns:
        Async context manager yielding the streaming response.
    """
    return http.stream(
        "POST",
        CGI_PATH,
        operation="export csv",
        data={"respmode": "csv", **fields, "valid_key": token.valid_key},
        token=token,
    )


async def import_csv(
    http: AsyncHttpClient,
    token: SessionToken,
    fields: Mapping[str, str],
    file_field: str,
    filename: str,
    content: BinaryIO,
) -> Envelope:
    """
    Upload a CSV file to the main CGI endpoint.

    Returns:
        Envelope of the accepted import.
    """
    return await http.request_envelope(
        CGI_PATH,
        operation="import csv",
        data={**fields, "respmode": "xml", "valid_key": token.valid_key},
        files={file_field: (filename, content, OCTET_STREAM)},
        token=token,
    )


def export_delivery_log(
    http: AsyncHttpClient, token: SessionToken, fields: Mapping[str, str]
) -> AbstractAsyncContextManager[httpx.Response]:
    """Open a streaming export of the delivery history."""
    return http.stream(
        "POST",
        HISTORY_PATH,
        operation="export delivery log",
        data={"respmode": "csv", **fields, "valid_key": token.valid_key},
        token=token,
    )


def export_delivery_csv(
    http: AsyncHttpClient, token: SessionToken, path: str, *, accept_language: str
) -> AbstractAsyncContextManager[httpx.Response]:
    """
    Open a streaming CSV export from a delivery admin page.

    Args:
        path: Page path below the delivery CGI, query string included.
    """
    return http.stream(
        "GET",
        f"{DELIVERY_CGI_PATH}{path}",
        operation="export delivery csv",
        token=token,
        headers={"Accept-Language": accept_language},
    )


async def import_delivery_csv(
    http: AsyncHttpClient,
    token: SessionToken,
    path: str,
    file_field: str,
    filename: str,
    content: BinaryIO,
    *,
    uid: str = "",
    replace: bool = False,
    accept_language: str,
) -> None:
    """
    Upload a CSV file to a delivery admin page.

    These pages have no envelope. Success is inferred from the absence of the
    known failure signatures, checked after the HTTP status.

    Raises:
        TransportError: If the request fails or the status is an error.
        ProtocolMismatchError: If a failure redirect or message is detected.
    """
    operation = "import delivery csv"
    data = {"action": "import"}
    if uid:
        data["uid"] = uid
    if replace:
        data["replace"] = "yes"

    response = await http.request(
        "POST",
        f"{DELIVERY_CGI_PATH}{path}",
        operation=operation,
        data=data,
        files={file_field: (filename, content, OCTET_STREAM)},
        token=token,
        headers={"Accept-Language": accept_language},
    )
    if not response.is_redirect:
        http.raise_for_status(response, operation=operation)

    location = response.headers.get("Location", "")
    if IMPORT_FAILURE_REDIRECT in location:
        msg = f"Import delivery csv failed: redirected to {location}"
        raise ProtocolMismatchError(msg, operation=operation, status_code=response.status_code)

    body = response.text
    for marker, reason in IMPORT_FAILURE_MARKERS.items():
        if marker in body:
            msg = f"Import delivery csv failed: {reason}"
            raise ProtocolMismatchError(
                msg, operation=operation, status_code=response.status_code
            )
    logger.debug("Delivery csv accepted", path=path, status=response.status_code)
