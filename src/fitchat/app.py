"""FastAPI + Socket.IO application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fitchat.config import ChatConfig
from fitchat.server import ChatServer
from fitchat.store import (
    InMemoryMessageStore,
    MessageStore,
    PostgresDialect,
    SQLiteDialect,
    SQLMessageStore,
)
from fitchat.transport import SocketIOTransport

logger = logging.getLogger(__name__)

SQLITE_SCHEME = "sqlite:///"
POSTGRES_SCHEMES = ("postgresql://", "postgres://")


@asynccontextmanager
async def open_store(config: ChatConfig) -> AsyncIterator[MessageStore]:
    """Open the message store named by ``config.database_url``."""
    url = config.database_url

    if url.startswith("memory://"):
        async with InMemoryMessageStore() as store:
            yield store

    elif url.startswith(SQLITE_SCHEME):
        import aiosqlite

        path = url[len(SQLITE_SCHEME) :] or ":memory:"
        conn = await aiosqlite.connect(path)
        try:
            async with SQLMessageStore(conn, SQLiteDialect(), config.store) as store:
                yield store
        finally:
            await conn.close()

    elif url.startswith(POSTGRES_SCHEMES):
        import asyncpg

        pool = await asyncpg.create_pool(url)
        try:
            async with SQLMessageStore(pool, PostgresDialect(), config.store) as store:
                yield store
        finally:
            await pool.close()

    else:
        msg = f"Unsupported database URL: {url}"
        raise ValueError(msg)


def _socketio_origins(config: ChatConfig) -> str | list[str]:
    return "*" if "*" in config.allowed_origins else config.allowed_origins


def register_socket_handlers(sio: socketio.AsyncServer, chat: ChatServer) -> None:
    """Bind connect/disconnect and every routed event to ``chat``."""

    async def connect(sid: str, environ: dict[str, Any], auth: Any = None) -> None:
        chat.connect(sid)

    async def disconnect(sid: str, *args: Any) -> None:
        reason = str(args[0]) if args else None
        await chat.disconnect(sid, reason)

    sio.on("connect", connect)
    sio.on("disconnect", disconnect)

    def bind(name: str) -> Any:
        async def handler(sid: str, data: Any = None) -> None:
            await chat.dispatch(name, sid, data)

        return handler

    for event in chat.router.events:
        sio.on(event, bind(event))


def create_app(
    config: ChatConfig | None = None,
    *,
    store: MessageStore | None = None,
) -> FastAPI:
    """Build the REST app. The Socket.IO server is kept on ``app.state.sio``.

    If ``store`` is given it is used as-is; otherwise one is opened from
    ``config.database_url`` for the lifetime of the app.
    """
    config = config or ChatConfig.from_env()

    sio = socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=_socketio_origins(config),
    )
    chat = ChatServer(SocketIOTransport(sio), store=store, config=config)
    register_socket_handlers(sio, chat)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if store is not None:
            yield
            return
        async with open_store(config) as opened:
            chat.attach_store(opened)
            logger.info("Message store ready: %s", config.database_url.split("@")[-1])
            yield
            logger.info("Shutting down message store...")

    app = FastAPI(title="fitchat", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials="*" not in config.allowed_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )
    app.state.chat = chat
    app.state.sio = sio

    @app.get("/")
    async def root() -> dict[str, str]:
        return {"service": "fitchat", "status": "ok"}

    @app.get("/chat/online")
    async def online_users() -> list[dict[str, Any]]:
        """Users with a live connection."""
        return chat.registry.online_users()

    @app.get("/chat/online/{user_id}")
    async def user_online(user_id: str) -> dict[str, Any]:
        return {"userId": user_id, "online": chat.registry.is_online(user_id)}

    return app


def create_asgi(config: ChatConfig | None = None) -> socketio.ASGIApp:
    """REST app with the Socket.IO endpoint mounted at ``/socket.io``."""
    app = create_app(config)
    return socketio.ASGIApp(app.state.sio, other_asgi_app=app)


def main() -> None:
    import uvicorn

    config = ChatConfig.from_env()
    logging.basicConfig(level=config.log_level)
    uvicorn.run(create_asgi(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
