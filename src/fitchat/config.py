"""Configuration dataclasses for the chat service."""

import os
from dataclasses import dataclass, field

DEFAULT_ORIGINS = ["http://localhost:3000", "http://localhost:8081"]


@dataclass
class StoreConfig:
    """Configuration for the SQL message store."""

    table_name: str = "chat_messages"
    """Table holding persisted chat messages."""

    auto_create_tables: bool = True
    """Automatically create the table and room index if they don't exist."""


@dataclass
class ChatConfig:
    """Configuration for the chat protocol and the server around it."""

    max_message_length: int = 1000
    """Maximum message length in characters, measured before trimming."""

    default_history_limit: int = 50
    """History page size when the client does not send one."""

    max_history_limit: int = 200
    """Upper bound applied to client-supplied history limits."""

    max_rooms_per_connection: int = 100
    """Cap on distinct conversations a single connection may join."""

    store_timeout: float = 5.0
    """Seconds before a store call is abandoned and reported unavailable."""

    handler_timeout: float = 10.0
    """Seconds before any single event handler is cancelled."""

    event_prefix: str = "chat:"
    """Prefix for chat event names on the wire."""

    signaling_prefix: str = "webrtc:"
    """Prefix for WebRTC signaling event names on the wire."""

    database_url: str = "memory://"
    """``memory://``, ``sqlite:///path.db`` or ``postgresql://...``."""

    allowed_origins: list[str] = field(default_factory=lambda: list(DEFAULT_ORIGINS))
    """CORS origins for both REST and Socket.IO. ``["*"]`` allows all."""

    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 5000

    store: StoreConfig = field(default_factory=StoreConfig)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ChatConfig":
        """Build a config from ``FITCHAT_*`` environment variables."""
        env = os.environ if environ is None else environ
        config = cls()

        if "FITCHAT_DATABASE_URL" in env:
            config.database_url = env["FITCHAT_DATABASE_URL"]
        if "FITCHAT_STORE_TIMEOUT" in env:
            config.store_timeout = float(env["FITCHAT_STORE_TIMEOUT"])
        if "FITCHAT_HANDLER_TIMEOUT" in env:
            config.handler_timeout = float(env["FITCHAT_HANDLER_TIMEOUT"])
        if "FITCHAT_MAX_HISTORY_LIMIT" in env:
            config.max_history_limit = int(env["FITCHAT_MAX_HISTORY_LIMIT"])
        if "FITCHAT_LOG_LEVEL" in env:
            config.log_level = env["FITCHAT_LOG_LEVEL"].upper()
        if "FITCHAT_HOST" in env:
            config.host = env["FITCHAT_HOST"]
        if "FITCHAT_PORT" in env:
            config.port = int(env["FITCHAT_PORT"])

        origins = env.get("FITCHAT_ALLOWED_ORIGINS", "")
        parsed = [o.strip() for o in origins.split(",") if o.strip()]
        if parsed:
            config.allowed_origins = parsed

        return config
