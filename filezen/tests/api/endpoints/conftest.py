from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from filezen.api.http_client import AsyncHttpClient
from filezen.config import FileZenConfig
from filezen.models.session import SessionToken
from filezen.tests.utils.mock_transport import BASE_URL, MockTransport


@pytest.fixture
def mock_transport() -> MockTransport:
    return MockTransport()


@pytest.fixture
def token() -> SessionToken:
    return SessionToken(session_id="sid123", valid_key="vk1")


@pytest_asyncio.fixture
async def http(mock_transport: MockTransport) -> AsyncIterator[AsyncHttpClient]:
    async with AsyncHttpClient(FileZenConfig(url=BASE_URL), transport=mock_transport) as client:
        yield client
