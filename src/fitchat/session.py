"""Per-connection chat protocol state machine."""

import logging
from collections.abc import Sequence
from enum import Enum
from typing import Any

from fitchat.config import ChatConfig
from fitchat.errors import (
    AuthenticationRequired,
    IdentityMismatch,
    SessionClosed,
    StoreUnavailable,
    ValidationError,
)
from fitchat.models import ChatMessage, MessageType
from fitchat.presence import PresenceEntry, PresenceRegistry, utcnow
from fitchat.rooms import room_key
from fitchat.store import MessageStore
from fitchat.transport import Transport

logger = logging.getLogger(__name__)


class SessionState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    TERMINAL = "terminal"


class ChatSession:
    """Chat protocol for one connection.

    Unauthenticated -> Authenticated on ``authenticate``; any state ->
    Terminal on ``disconnect``. Failures raise ``ChatError`` subclasses which
    the router reports to this connection only.

    Sending does not require a prior ``join``: the room is derived from the
    sender and receiver ids on every send, and the sender's own copy of the
    broadcast is delivered directly rather than through room membership.
    """

    def __init__(
        self,
        sid: str,
        transport: Transport,
        registry: PresenceRegistry,
        store: MessageStore,
        config: ChatConfig | None = None,
    ) -> None:
        self.sid = sid
        self.user_id: str | None = None
        self.username: str | None = None
        self.rooms: set[str] = set()
        self.state = SessionState.UNAUTHENTICATED
        self._transport = transport
        self._registry = registry
        self._store = store
        self._config = config or ChatConfig()

    def _wire(self, name: str) -> str:
        return self._config.event_prefix + name

    async def _reply(self, name: str, data: dict[str, Any]) -> None:
        await self._transport.emit(self._wire(name), data, to=self.sid)

    def _require_open(self) -> None:
        if self.state is SessionState.TERMINAL:
            raise SessionClosed()

    def _require_auth(self) -> str:
        self._require_open()
        if self.state is not SessionState.AUTHENTICATED or self.user_id is None:
            raise AuthenticationRequired()
        return self.user_id

    @property
    def authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    async def authenticate(self, user_id: str | None, username: str | None) -> None:
        self._require_open()
        if not user_id:
            raise ValidationError("User ID is required")

        previous = self.user_id
        if previous is not None and previous != user_id:
            # Conversations joined under the old identity are not ours anymore
            await self._leave_rooms()
            await self._go_offline(previous, self.username)

        self.user_id = user_id
        self.username = username
        self._registry.set(user_id, PresenceEntry(sid=self.sid, username=username))
        self.state = SessionState.AUTHENTICATED

        await self._reply(
            "authenticated",
            {
                "userId": user_id,
                "username": username,
                "message": "Successfully authenticated",
            },
        )
        await self._transport.emit(
            self._wire("user_online"),
            {"userId": user_id, "username": username},
            skip_sid=self.sid,
        )
        logger.info("User %s (%s) authenticated on %s", username, user_id, self.sid)

    async def join(
        self,
        user_id: str | None,
        peer_id: str | None,
        peer_name: str | None = None,
    ) -> str:
        current = self._require_auth()
        if not user_id or not peer_id:
            raise ValidationError("Both user IDs are required")
        if user_id != current:
            raise IdentityMismatch("User ID must match authenticated user")

        room = room_key(user_id, peer_id)
        limit = self._config.max_rooms_per_connection
        if room not in self.rooms and len(self.rooms) >= limit:
            msg = f"Too many open conversations (max {limit})"
            raise ValidationError(msg)

        await self._transport.enter_room(self.sid, room)
        self.rooms.add(room)

        await self._reply(
            "joined",
            {
                "room": room,
                "userId": user_id,
                "peerId": peer_id,
                "peerName": peer_name,
                "message": f"Joined chat with {peer_name or peer_id}",
            },
        )

        peer = self._registry.get(peer_id)
        if peer is not None:
            await self._transport.emit(
                self._wire("peer_joined"),
                {
                    "room": room,
                    "userId": user_id,
                    "username": self.username,
                    "message": f"{self.username} joined the chat",
                },
                to=peer.sid,
            )

        logger.info("User %s joined room %s", self.user_id, room)
        return room

    async def send(
        self,
        sender_id: str | None,
        receiver_id: str | None,
        content: str | None,
        message_type: MessageType = MessageType.TEXT,
    ) -> ChatMessage:
        user_id = self._require_auth()
        if not sender_id or not receiver_id or not content:
            raise ValidationError("Sender ID, receiver ID, and content are required")
        if sender_id != user_id:
            raise IdentityMismatch()

        text = content.strip()
        if not text:
            raise ValidationError("Message content cannot be empty")
        limit = self._config.max_message_length
        if len(content) > limit:
            raise ValidationError(f"Message too long (max {limit} characters)")

        room = room_key(sender_id, receiver_id)
        try:
            stored = await self._store.append(
                ChatMessage(
                    room=room,
                    sender_id=sender_id,
                    receiver_id=receiver_id,
                    content=text,
                    message_type=message_type,
                )
            )
        except StoreUnavailable as e:
            logger.warning("Send from %s to room %s failed: %s", sender_id, room, e)
            raise StoreUnavailable(
                "Failed to send message", details=e.details or e.message
            ) from e

        message = self._message_event(stored)
        # Room first, then the sender directly so it gets exactly one copy
        await self._transport.emit(
            self._wire("message"), message, room=room, skip_sid=self.sid
        )
        await self._reply("message", message)
        await self._reply(
            "message_sent",
            {
                "messageId": stored.id,
                "room": room,
                "timestamp": message["createdAt"],
            },
        )

        logger.info("Message %s sent in room %s", stored.id, room)
        return stored

    def _message_event(self, stored: ChatMessage) -> dict[str, Any]:
        wire = stored.to_wire()
        return {
            "id": wire["id"],
            "room": wire["room"],
            "senderId": wire["senderId"],
            "receiverId": wire["receiverId"],
            "content": wire["content"],
            "messageType": wire["messageType"],
            "createdAt": wire["createdAt"],
            "senderName": self.username,
        }

    async def typing(self, receiver_id: str | None, is_typing: bool) -> None:
        """Relay a typing indicator. Ignored without identity or receiver."""
        self._require_open()
        if not self.authenticated or self.user_id is None or not receiver_id:
            return

        room = room_key(self.user_id, receiver_id)
        await self._transport.emit(
            self._wire("typing"),
            {
                "userId": self.user_id,
                "username": self.username,
                "isTyping": is_typing,
            },
            room=room,
            skip_sid=self.sid,
        )

    async def mark_read(
        self, message_ids: Sequence[str] | None, sender_id: str | None
    ) -> int:
        """Persist read flags and notify the other party.

        Only messages addressed to this user are flagged. Returns the number
        of messages newly marked as read.
        """
        user_id = self._require_auth()
        if message_ids is None or not sender_id:
            raise ValidationError("Invalid read receipt data")

        room = room_key(user_id, sender_id)
        ids = list(message_ids)
        try:
            updated = await self._store.mark_read(room, ids, user_id)
        except StoreUnavailable as e:
            raise StoreUnavailable(
                "Failed to mark messages as read", details=e.details or e.message
            ) from e

        await self._transport.emit(
            self._wire("message_read"),
            {
                "messageIds": ids,
                "readBy": user_id,
                "readAt": utcnow().isoformat(),
            },
            room=room,
            skip_sid=self.sid,
        )
        await self._reply("read_receipt", {"messageIds": ids, "status": "confirmed"})
        return updated

    async def get_history(
        self,
        peer_id: str | None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ChatMessage]:
        user_id = self._require_auth()
        if not peer_id:
            raise ValidationError("User ID and peer ID are required")

        if limit is None:
            limit = self._config.default_history_limit
        limit = max(1, min(limit, self._config.max_history_limit))
        offset = max(0, offset)

        room = room_key(user_id, peer_id)
        try:
            newest_first = await self._store.query(room, limit, offset)
        except StoreUnavailable as e:
            raise StoreUnavailable(
                "Failed to retrieve chat history", details=e.details or e.message
            ) from e

        messages = list(reversed(newest_first))
        await self._reply(
            "history",
            {
                "room": room,
                "messages": [m.to_wire() for m in messages],
                "hasMore": len(messages) == limit,
            },
        )
        return messages

    async def disconnect(self, reason: str | None = None) -> None:
        """Tear down the session. A second call is a no-op."""
        if self.state is SessionState.TERMINAL:
            return

        was_authenticated = self.authenticated
        self.state = SessionState.TERMINAL
        await self._leave_rooms()

        if not was_authenticated or self.user_id is None:
            logger.info("Unauthenticated socket %s disconnected: %s", self.sid, reason)
            return

        await self._go_offline(self.user_id, self.username)
        logger.info(
            "User %s (%s) disconnected: %s", self.username, self.user_id, reason
        )

    async def _leave_rooms(self) -> None:
        rooms, self.rooms = self.rooms, set()
        for room in rooms:
            await self._transport.leave_room(self.sid, room)

    async def _go_offline(self, user_id: str, username: str | None) -> None:
        """Drop ``user_id`` from presence and tell everyone else.

        A superseded connection must not evict the newer entry, so nothing
        happens unless this connection owns it.
        """
        if not self._registry.remove_if_owner(user_id, self.sid):
            return
        await self._transport.emit(
            self._wire("user_offline"),
            {
                "userId": user_id,
                "username": username,
                "lastSeen": utcnow().isoformat(),
            },
            skip_sid=self.sid,
        )
