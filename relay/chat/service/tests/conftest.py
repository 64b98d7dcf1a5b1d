import httpx
import pytest
from fastapi.testclient import TestClient

from relay.chat.service import bridge
from relay.chat.service.server import create_app


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def upstream():
    """Install a mock upstream; tests assign ``state.handler``."""

    class _Upstream:
        def __init__(self) -> None:
            self.requests = []
            self.handler = lambda request: httpx.Response(200, content=b"")

        def __call__(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return self.handler(request)

    state = _Upstream()
    bridge.set_upstream_client(httpx.AsyncClient(transport=httpx.MockTransport(state)))
    return state
