"""Shared fixtures for fitchat tests."""

from collections.abc import AsyncGenerator

import pytest

from fitchat import (
    ChatConfig,
    ChatServer,
    InMemoryMessageStore,
    InMemoryTransport,
    PresenceRegistry,
)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def transport() -> InMemoryTransport:
    return InMemoryTransport()


@pytest.fixture
def registry() -> PresenceRegistry:
    return PresenceRegistry()


@pytest.fixture
def config() -> ChatConfig:
    """Short timeouts so failure paths finish quickly."""
    return ChatConfig(store_timeout=0.5, handler_timeout=2.0)


@pytest.fixture
async def store() -> AsyncGenerator[InMemoryMessageStore, None]:
    async with InMemoryMessageStore() as s:
        yield s


@pytest.fixture
def server(
    transport: InMemoryTransport,
    store: InMemoryMessageStore,
    registry: PresenceRegistry,
    config: ChatConfig,
) -> ChatServer:
    return ChatServer(transport, store, registry, config, instrument=False)


@pytest.fixture
def connect(transport: InMemoryTransport, server: ChatServer):
    """Open a connection on both the transport and the chat server."""

    def _connect(sid: str):
        transport.connect(sid)
        return server.connect(sid)

    return _connect
