"""Chat server: owns sessions and wires events to them."""

import logging
from collections.abc import Sequence
from typing import cast

from fitchat.config import ChatConfig
from fitchat.errors import ChatError, SessionClosed, StoreUnavailable
from fitchat.models import (
    Authenticate,
    ChatMessage,
    GetHistory,
    Join,
    MarkRead,
    Send,
    SignalAnswer,
    SignalIce,
    SignalJoin,
    SignalOffer,
    Typing,
)
from fitchat.presence import PresenceRegistry
from fitchat.router import (
    EventContext,
    EventRouter,
    metrics_middleware,
    recoverer,
    timeout,
    tracing,
)
from fitchat.session import ChatSession
from fitchat.signaling import SignalingRelay
from fitchat.store import MessageStore, TimeoutMessageStore
from fitchat.transport import Transport

logger = logging.getLogger(__name__)


class _UnattachedStore:
    """Placeholder until the application attaches a real store."""

    def _unavailable(self) -> StoreUnavailable:
        return StoreUnavailable("Message store is not ready")

    async def append(self, message: ChatMessage) -> ChatMessage:
        raise self._unavailable()

    async def query(self, room: str, limit: int, offset: int = 0) -> list[ChatMessage]:
        raise self._unavailable()

    async def mark_read(
        self, room: str, message_ids: Sequence[str], reader_id: str
    ) -> int:
        raise self._unavailable()

    async def close(self) -> None:
        pass


class ChatServer:
    """Creates a ChatSession per connection and routes events to it.

    The presence registry is injected so independent servers (and tests)
    never share state.

    Example:
        transport = InMemoryTransport()
        server = ChatServer(transport, InMemoryMessageStore())
        transport.connect("sid-1")
        server.connect("sid-1")
        await server.dispatch("chat:authenticate", "sid-1", {"userId": "1"})
    """

    def __init__(
        self,
        transport: Transport,
        store: MessageStore | None = None,
        registry: PresenceRegistry | None = None,
        config: ChatConfig | None = None,
        *,
        instrument: bool = True,
    ) -> None:
        self.config = config or ChatConfig()
        self.transport = transport
        self.registry = registry if registry is not None else PresenceRegistry()
        self.relay = SignalingRelay(transport, self.config.signaling_prefix)
        self._sessions: dict[str, ChatSession] = {}
        self._store: TimeoutMessageStore = TimeoutMessageStore(
            _UnattachedStore(), self.config.store_timeout
        )
        if store is not None:
            self.attach_store(store)

        self.router = EventRouter(on_error=self._report_error)
        self.router.add_middleware(recoverer(logger))
        if instrument:
            self.router.add_middleware(tracing())
            self.router.add_middleware(metrics_middleware())
        self.router.add_middleware(timeout(self.config.handler_timeout))
        self._register_routes()

    @property
    def store(self) -> TimeoutMessageStore:
        return self._store

    def attach_store(self, store: MessageStore) -> None:
        """Use ``store`` for persistence, bounded by the configured timeout.

        Sessions capture the store when they are created, so attach before
        accepting connections.
        """
        if isinstance(store, TimeoutMessageStore):
            self._store = store
        else:
            self._store = TimeoutMessageStore(store, self.config.store_timeout)

    def connect(self, sid: str) -> ChatSession:
        session = self._sessions.get(sid)
        if session is None:
            session = ChatSession(
                sid, self.transport, self.registry, self._store, self.config
            )
            self._sessions[sid] = session
            logger.debug("New socket connected: %s", sid)
        return session

    def session(self, sid: str) -> ChatSession | None:
        return self._sessions.get(sid)

    def _session_for(self, sid: str) -> ChatSession:
        session = self._sessions.get(sid)
        if session is None:
            raise SessionClosed()
        return session

    @property
    def sessions(self) -> list[ChatSession]:
        return list(self._sessions.values())

    async def disconnect(self, sid: str, reason: str | None = None) -> None:
        session = self._sessions.pop(sid, None)
        if session is None:
            return
        await session.disconnect(reason)

    async def dispatch(self, event: str, sid: str, data: object = None) -> None:
        """Handle one inbound wire event from ``sid``."""
        await self.router.dispatch(event, sid, data)

    async def _report_error(self, sid: str, error: Exception) -> None:
        payload = (
            error.to_payload()
            if isinstance(error, ChatError)
            else {"message": "Internal server error"}
        )
        logger.debug("Reporting error to %s: %s", sid, payload)
        await self.transport.emit(
            self.config.event_prefix + "error", payload, to=sid
        )

    def _register_routes(self) -> None:
        chat = self.config.event_prefix
        signal = self.config.signaling_prefix
        add = self.router.add_handler

        add(chat + "authenticate", Authenticate, self._on_authenticate)
        add(chat + "join", Join, self._on_join)
        add(chat + "send", Send, self._on_send)
        add(chat + "typing", Typing, self._on_typing)
        add(chat + "mark_read", MarkRead, self._on_mark_read)
        add(chat + "get_history", GetHistory, self._on_get_history)

        add(signal + "join", SignalJoin, self._on_signal_join)
        add(signal + "offer", SignalOffer, self._on_signal_offer)
        add(signal + "answer", SignalAnswer, self._on_signal_answer)
        add(signal + "ice", SignalIce, self._on_signal_ice)

    async def _on_authenticate(self, ctx: EventContext) -> None:
        p = cast(Authenticate, ctx.payload)
        await self._session_for(ctx.sid).authenticate(p.user_id, p.username)

    async def _on_join(self, ctx: EventContext) -> None:
        p = cast(Join, ctx.payload)
        await self._session_for(ctx.sid).join(p.user_id, p.peer_id, p.peer_name)

    async def _on_send(self, ctx: EventContext) -> None:
        p = cast(Send, ctx.payload)
        await self._session_for(ctx.sid).send(
            p.sender_id, p.receiver_id, p.content, p.message_type
        )

    async def _on_typing(self, ctx: EventContext) -> None:
        p = cast(Typing, ctx.payload)
        await self._session_for(ctx.sid).typing(p.receiver_id, p.is_typing)

    async def _on_mark_read(self, ctx: EventContext) -> None:
        p = cast(MarkRead, ctx.payload)
        await self._session_for(ctx.sid).mark_read(p.message_ids, p.sender_id)

    async def _on_get_history(self, ctx: EventContext) -> None:
        p = cast(GetHistory, ctx.payload)
        await self._session_for(ctx.sid).get_history(p.peer_id, p.limit, p.offset)

    async def _on_signal_join(self, ctx: EventContext) -> None:
        p = cast(SignalJoin, ctx.payload)
        await self.relay.join_room(ctx.sid, p.room)

    async def _on_signal_offer(self, ctx: EventContext) -> None:
        p = cast(SignalOffer, ctx.payload)
        await self.relay.offer(ctx.sid, p.room, p.sdp, p.sender)

    async def _on_signal_answer(self, ctx: EventContext) -> None:
        p = cast(SignalAnswer, ctx.payload)
        await self.relay.answer(ctx.sid, p.room, p.sdp, p.sender)

    async def _on_signal_ice(self, ctx: EventContext) -> None:
        p = cast(SignalIce, ctx.payload)
        await self.relay.ice_candidate(ctx.sid, p.room, p.candidate, p.sender)
