"""Tests for the FastAPI application and configuration loading."""

from collections.abc import AsyncGenerator

import httpx
import pytest
from fastapi import FastAPI

from fitchat import ChatConfig, InMemoryMessageStore
from fitchat.app import create_app, open_store
from fitchat.presence import PresenceEntry
from fitchat.store import SQLMessageStore

pytestmark = pytest.mark.anyio


@pytest.fixture
def app() -> FastAPI:
    return create_app(ChatConfig(), store=InMemoryMessageStore())


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


class TestRoutes:
    async def test_root(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/")
        assert response.status_code == 200
        assert response.json() == {"service": "fitchat", "status": "ok"}

    async def test_online_users_empty(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/chat/online")
        assert response.status_code == 200
        assert response.json() == []

    async def test_online_users_reflects_registry(
        self, app: FastAPI, client: httpx.AsyncClient
    ) -> None:
        app.state.chat.registry.set("1", PresenceEntry(sid="s1", username="Alice"))

        response = await client.get("/chat/online")
        [user] = response.json()
        assert user["userId"] == "1"
        assert user["username"] == "Alice"
        assert "lastSeen" in user

    async def test_single_user_status(
        self, app: FastAPI, client: httpx.AsyncClient
    ) -> None:
        app.state.chat.registry.set("1", PresenceEntry(sid="s1"))

        online = await client.get("/chat/online/1")
        offline = await client.get("/chat/online/2")

        assert online.json() == {"userId": "1", "online": True}
        assert offline.json() == {"userId": "2", "online": False}

    async def test_socket_events_registered(self, app: FastAPI) -> None:
        events = app.state.chat.router.events
        assert "chat:send" in events
        assert "webrtc:ice" in events


class TestConfigFromEnv:
    def test_defaults(self) -> None:
        config = ChatConfig.from_env({})
        assert config == ChatConfig()

    def test_overrides(self) -> None:
        config = ChatConfig.from_env(
            {
                "FITCHAT_DATABASE_URL": "sqlite:///chat.db",
                "FITCHAT_STORE_TIMEOUT": "1.5",
                "FITCHAT_PORT": "8080",
                "FITCHAT_LOG_LEVEL": "debug",
                "FITCHAT_ALLOWED_ORIGINS": "https://a.example, https://b.example,",
            }
        )
        assert config.database_url == "sqlite:///chat.db"
        assert config.store_timeout == 1.5
        assert config.port == 8080
        assert config.log_level == "DEBUG"
        assert config.allowed_origins == ["https://a.example", "https://b.example"]


class TestOpenStore:
    async def test_memory(self) -> None:
        async with open_store(ChatConfig(database_url="memory://")) as store:
            assert isinstance(store, InMemoryMessageStore)

    async def test_sqlite_in_memory(self) -> None:
        async with open_store(ChatConfig(database_url="sqlite:///")) as store:
            assert isinstance(store, SQLMessageStore)

    async def test_unsupported_url(self) -> None:
        with pytest.raises(ValueError, match="Unsupported database URL"):
            async with open_store(ChatConfig(database_url="mongodb://localhost")):
                pass
