import io
import zipfile
from datetime import date
from pathlib import Path

import pytest

from filezen.api.http_client import AsyncHttpClient
from filezen.config import FileZenConfig
from filezen.exceptions import DeliveryError, EnvelopeError, FileTooLargeError
from filezen.models.delivery import DeliveryRequest, Recipient
from filezen.services.delivery_service import DeliveryService
from filezen.services.session_service import SessionManager
from filezen.tests.utils.mock_transport import BASE_URL, MockTransport, parse_form


@pytest.fixture
def service(
    http: AsyncHttpClient, session: SessionManager, config: FileZenConfig
) -> DeliveryService:
    return DeliveryService(http, session, config)


def make_request(file: Path) -> DeliveryRequest:
    return DeliveryRequest(
        sender="alice@example.com",
        recipients=(Recipient(name="Bob", email="bob@example.com"),),
        file=file,
        start=date(2026, 5, 1),
        days=3,
        download_limit=2,
        subject="Files",
    )


@pytest.mark.asyncio
async def test_send_file(
    service: DeliveryService,
    mock_transport: MockTransport,
    session: SessionManager,
    tmp_path: Path,
) -> None:
    path = tmp_path / "report.pdf"
    path.write_bytes(b"pdf")
    mock_transport.add_envelope("OK", valid_key="vk1")

    await service.send(make_request(path))

    (request,) = mock_transport.requests
    form = parse_form(request)
    assert form.files == {"file1": ("report.pdf", b"pdf")}
    assert form.fields["subject"] == "Files"
    assert form.fields["valid_key"] == "vk0"
    assert session.token.valid_key == "vk1"


@pytest.mark.asyncio
async def test_send_directory_zips_it_first(
    http: AsyncHttpClient,
    session: SessionManager,
    mock_transport: MockTransport,
    tmp_path: Path,
) -> None:
    service = DeliveryService(http, session, FileZenConfig(url=BASE_URL))
    source = tmp_path / "bundle"
    source.mkdir()
    (source / "a.txt").write_text("a")
    (source / "b.txt").write_text("b")
    mock_transport.add_envelope("OK", valid_key="vk1")

    await service.send(make_request(source))

    filename, content = parse_form(mock_transport.requests[0]).files["file1"]
    assert filename == "bundle.zip"
    with zipfile.ZipFile(io.BytesIO(content)) as archive:
        names = set(archive.namelist())
    assert {"bundle/a.txt", "bundle/b.txt"} <= names
    assert sorted(p.name for p in tmp_path.iterdir()) == ["bundle"]


@pytest.mark.asyncio
async def test_send_rejects_oversized_file_before_any_request(
    service: DeliveryService, mock_transport: MockTransport, tmp_path: Path
) -> None:
    path = tmp_path / "big.bin"
    path.write_bytes(b"x" * 201)

    with pytest.raises(FileTooLargeError) as exc_info:
        await service.send(make_request(path))

    assert exc_info.value.size == 201
    assert exc_info.value.limit == 200
    assert mock_transport.requests == []


@pytest.mark.asyncio
async def test_send_rejected_by_server(
    service: DeliveryService, mock_transport: MockTransport, tmp_path: Path
) -> None:
    path = tmp_path / "report.pdf"
    path.write_bytes(b"pdf")
    mock_transport.add_envelope("Invalid recipient")

    with pytest.raises(EnvelopeError, match="Invalid recipient"):
        await service.send(make_request(path))


@pytest.mark.asyncio
async def test_send_conf(
    service: DeliveryService, mock_transport: MockTransport, tmp_path: Path
) -> None:
    path = tmp_path / "report.pdf"
    path.write_bytes(b"pdf")
    conf = tmp_path / "send.conf"
    conf.write_text(
        "from: alice@example.com\n"
        "mailto: Bob <bob@example.com>\n"
        f"file: {path}\n"
        "start: 2026/05/01\n"
        "days: 3\n"
        "limit: 2\n"
        "comment: Hi Bob\n",
        encoding="utf-8",
    )
    mock_transport.add_envelope("OK", valid_key="vk1")

    await service.send_conf(conf)

    fields = parse_form(mock_transport.requests[0]).fields
    assert fields["comment"] == "Hi Bob\n"
    assert fields["recipient-name-1"] == "Bob"


@pytest.mark.asyncio
async def test_send_conf_incomplete(
    service: DeliveryService, mock_transport: MockTransport, tmp_path: Path
) -> None:
    conf = tmp_path / "send.conf"
    conf.write_text("from: alice@example.com\n", encoding="utf-8")

    with pytest.raises(DeliveryError, match="No file"):
        await service.send_conf(conf)

    assert mock_transport.requests == []
