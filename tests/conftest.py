import pytest

from cryptol_client.client.config import ClientSettings
from tests.test_helpers import SERVER_URL, FakeCryptolServer


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def server() -> FakeCryptolServer:
    return FakeCryptolServer()


@pytest.fixture
def settings() -> ClientSettings:
    return ClientSettings(server_url=SERVER_URL, request_timeout=5.0)
