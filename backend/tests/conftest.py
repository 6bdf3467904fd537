"""Shared test fixtures and configuration for backend tests."""
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from app.config import AppConfig, DatabaseSettings
from app.contacts import ContactDirectory
from app.main import create_app
from app.storage import Database, MessageStore, UserDirectory


class FakeConnection:
    """Stand-in for a websocket: records frames, can be closed or broken."""

    def __init__(self, name: str = "conn", open: bool = True, broken: bool = False):
        self.name = name
        self.sent = []
        self.broken = broken
        state = WebSocketState.CONNECTED if open else WebSocketState.DISCONNECTED
        self.client_state = state
        self.application_state = state

    def close(self) -> None:
        self.client_state = WebSocketState.DISCONNECTED
        self.application_state = WebSocketState.DISCONNECTED

    async def send_json(self, payload: dict) -> None:
        if self.broken:
            raise RuntimeError("connection reset")
        self.sent.append(payload)

    def types(self):
        return [frame["type"] for frame in self.sent]

    def __repr__(self) -> str:
        return f"FakeConnection({self.name})"


@pytest.fixture
def make_connection():
    """Factory for FakeConnection objects."""
    return FakeConnection


@pytest.fixture
def database():
    """Fresh in-memory DuckDB with the relay schema."""
    db = Database(":memory:").open()
    yield db
    db.close()


@pytest.fixture
def message_store(database):
    return MessageStore(database)


@pytest.fixture
def user_directory(database):
    return UserDirectory(database)


@pytest.fixture
def contacts(user_directory):
    return ContactDirectory(user_directory)


@pytest.fixture
def test_config():
    return AppConfig(database=DatabaseSettings(url=":memory:"))


@pytest.fixture
def api_client(test_config):
    """TestClient for a fresh relay app with its lifespan running.

    Each test gets its own registry and in-memory database.
    """
    with TestClient(create_app(test_config)) as client:
        yield client
