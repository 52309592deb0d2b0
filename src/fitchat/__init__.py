"""fitchat: Real-time chat, presence and WebRTC signaling.

This package re-exports the main components:
    from fitchat import ChatServer, InMemoryTransport, InMemoryMessageStore
"""

from fitchat.app import create_app, create_asgi
from fitchat.config import ChatConfig, StoreConfig
from fitchat.errors import (
    AuthenticationRequired,
    ChatError,
    IdentityMismatch,
    SessionClosed,
    StoreUnavailable,
    ValidationError,
)
from fitchat.models import ChatMessage, MessageType
from fitchat.presence import PresenceEntry, PresenceRegistry
from fitchat.rooms import room_key
from fitchat.server import ChatServer
from fitchat.session import ChatSession, SessionState
from fitchat.signaling import SignalingRelay
from fitchat.store import (
    InMemoryMessageStore,
    MessageStore,
    SQLMessageStore,
    TimeoutMessageStore,
)
from fitchat.transport import InMemoryTransport, SocketIOTransport, Transport

__version__ = "0.1.0"

__all__ = [
    # app
    "create_app",
    "create_asgi",
    "ChatConfig",
    "StoreConfig",
    # protocol
    "ChatServer",
    "ChatSession",
    "SessionState",
    "SignalingRelay",
    "PresenceEntry",
    "PresenceRegistry",
    "room_key",
    # persistence
    "ChatMessage",
    "MessageType",
    "MessageStore",
    "InMemoryMessageStore",
    "SQLMessageStore",
    "TimeoutMessageStore",
    # transport
    "Transport",
    "InMemoryTransport",
    "SocketIOTransport",
    # errors
    "ChatError",
    "ValidationError",
    "AuthenticationRequired",
    "IdentityMismatch",
    "StoreUnavailable",
    "SessionClosed",
]
