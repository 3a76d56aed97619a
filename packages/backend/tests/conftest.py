"""Test fixtures — a fresh app, store and hub per test.

Learn: create_app() builds its own ClinicalStore and RealtimeHub, so each
test gets isolated state without any rollback machinery. REST tests use
httpx's ASGITransport; WebSocket round trips use Starlette's TestClient
(see test_realtime_ws.py), since ASGITransport does not speak WebSocket.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from careboard.main import create_app
from careboard.realtime.hub import RealtimeHub

from fakes import PATIENT_BODY, FakeConnection, RecordingNotifier


@pytest.fixture()
def app():
    return create_app()


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client bound to a fresh app instance."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def hub(app) -> RealtimeHub:
    return app.state.hub


@pytest.fixture()
def store(app):
    return app.state.store


@pytest.fixture()
def connect(hub):
    """Register N fake open connections on the hub and return them."""
    def _connect(n: int = 1, **kwargs) -> list[FakeConnection]:
        conns = [FakeConnection(**kwargs) for _ in range(n)]
        for c in conns:
            hub.registry.register(c)
        return conns

    return _connect


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture()
async def patient(client):
    """Admit a patient via the API and return its JSON."""
    resp = await client.post("/api/patients", json=PATIENT_BODY)
    assert resp.status_code == 201
    return resp.json()
