"""
HTTP transport and body helpers for testing against a fake FileZen server.
"""

from dataclasses import dataclass, field
from email.parser import BytesParser
from email.policy import default
from urllib.parse import parse_qsl
from xml.sax.saxutils import quoteattr

import httpx

BASE_URL = "https://fz.example.com"


class MockTransport(httpx.AsyncBaseTransport):
    """Replays queued responses in order and records every request."""

    def __init__(self) -> None:
        self._queue: list[httpx.Response | Exception] = []
        self.requests: list[httpx.Request] = []

    def add_response(
        self,
        status_code: int = httpx.codes.OK,
        content: bytes = b"",
        headers: dict[str, str] | None = None,
        *,
        with_length: bool = True,
    ) -> None:
        """
        Queue a response.

        Args:
            with_length: When False the response declares no Content-Length.
        """
        if with_length:
            response = httpx.Response(status_code, content=content, headers=headers)
        else:
            response = httpx.Response(
                status_code, headers=headers, stream=httpx.ByteStream(content)
            )
        self._queue.append(response)

    def add_envelope(self, status: str = "OK", **kwargs: str | None) -> None:
        """Queue an XML envelope answer; see ``envelope_xml`` for kwargs."""
        self.add_response(content=envelope_xml(status, **kwargs))

    def add_error(self, error: Exception) -> None:
        """Queue a transport-level failure."""
        self._queue.append(error)

    @property
    def pending(self) -> int:
        return len(self._queue)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await request.aread()
        self.requests.append(request)
        if not self._queue:
            return httpx.Response(httpx.codes.INTERNAL_SERVER_ERROR, content=b"No mock response")
        item = self._queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@dataclass
class Form:
    """Decoded request body."""

    fields: dict[str, str] = field(default_factory=dict)
    files: dict[str, tuple[str, bytes]] = field(default_factory=dict)


def parse_form(request: httpx.Request) -> Form:
    """Decode a url-encoded or multipart request body."""
    content_type = request.headers.get("Content-Type", "")
    if not content_type.startswith("multipart/"):
        return Form(fields=dict(parse_qsl(request.content.decode(), keep_blank_values=True)))

    message = BytesParser(policy=default).parsebytes(
        f"Content-Type: {content_type}\r\n\r\n".encode() + request.content
    )
    form = Form()
    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        payload = part.get_payload(decode=True) or b""
        if (filename := part.get_filename()) is not None:
            form.files[name] = (filename, payload)
        else:
            form.fields[name] = payload.decode()
    return form


def file_xml(key: str, name: str, size: str = "10", owner: str = "alice") -> str:
    return (
        f"<File Key={quoteattr(key)} Name={quoteattr(name)} Owner={quoteattr(owner)}"
        f' Size="{size}" TimeStamp="1700000000" DrmFlag="0" PdfFlag="1"/>'
    )


def folder_xml(folder_id: str, name: str, access: str = "read,write", *files: str) -> str:
    return (
        f"<Folder Id={quoteattr(folder_id)} Name={quoteattr(name)}"
        f' Access={quoteattr(access)} Limit="">{"".join(files)}</Folder>'
    )


def project_xml(name: str, *folders: str) -> str:
    return f"<Project Name={quoteattr(name)}>{''.join(folders)}</Project>"


def envelope_xml(
    status: str = "OK",
    *,
    valid_key: str | None = None,
    projects: str | None = None,
    version: str | None = None,
    user_mail_addr: str | None = None,
    system_mail_addr: str | None = None,
) -> bytes:
    """
    Build an envelope body.

    Args:
        projects: Inner XML of ProjectList; no ProjectList when None.
    """
    parts = [f"<Lastop><Res>{status}</Res></Lastop>"]
    if projects is not None:
        parts.append(f"<ProjectList>{projects}</ProjectList>")
    for tag, value in (
        ("ValidKey", valid_key),
        ("Version", version),
        ("UserMailAddr", user_mail_addr),
        ("SystemMailAddr", system_mail_addr),
    ):
        if value is not None:
            parts.append(f"<{tag}>{value}</{tag}>")
    body = "".join(parts)
    return f'<?xml version="1.0" encoding="UTF-8"?><FileZen>{body}</FileZen>'.encode()
