from collections.abc import AsyncIterator
from unittest.mock import Mock

import pytest
import pytest_asyncio

from filezen.api.http_client import AsyncHttpClient
from filezen.config import FileZenConfig
from filezen.services.session_service import SessionManager
from filezen.services.tree_service import DirectoryTreeCache
from filezen.tests.services.constants import CHUNK_SIZE, add_login_response
from filezen.tests.utils.mock_transport import BASE_URL, MockTransport


@pytest.fixture
def mock_http() -> Mock:
    return Mock()


@pytest.fixture
def config() -> FileZenConfig:
    return FileZenConfig(url=BASE_URL, chunk_size=CHUNK_SIZE, delivery_max_size=200)


@pytest.fixture
def tree_cache() -> DirectoryTreeCache:
    return DirectoryTreeCache()


@pytest.fixture
def mock_transport() -> MockTransport:
    return MockTransport()


@pytest_asyncio.fixture
async def http(
    config: FileZenConfig, mock_transport: MockTransport
) -> AsyncIterator[AsyncHttpClient]:
    async with AsyncHttpClient(config, transport=mock_transport) as client:
        yield client


@pytest_asyncio.fixture
async def session(
    http: AsyncHttpClient, mock_transport: MockTransport, tree_cache: DirectoryTreeCache
) -> SessionManager:
    """A session logged in with token (sid123, vk0) and the login tree."""
    manager = SessionManager(http, tree_cache)
    add_login_response(mock_transport)
    await manager.login("alice", "secret")
    mock_transport.requests.clear()
    return manager
