"""Inbound event payloads and the persisted chat message."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from fitchat.rooms import ROOM_DELIMITER


def _coerce_user_id(value: Any) -> Any:
    # Clients send numeric ids as JSON numbers
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str) and ROOM_DELIMITER in value:
        msg = f"user ids may not contain {ROOM_DELIMITER!r}"
        raise ValueError(msg)
    return value


UserId = Annotated[str, BeforeValidator(_coerce_user_id)]


class MessageType(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"
    EMOJI = "emoji"


class Payload(BaseModel):
    """Base for inbound payloads: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# Chat events
class Authenticate(Payload):
    user_id: UserId | None = None
    username: str | None = None


class Join(Payload):
    user_id: UserId | None = None
    peer_id: UserId | None = None
    peer_name: str | None = None


class Send(Payload):
    sender_id: UserId | None = None
    receiver_id: UserId | None = None
    content: str | None = None
    message_type: MessageType = MessageType.TEXT


class Typing(Payload):
    receiver_id: UserId | None = None
    is_typing: bool = False


class MarkRead(Payload):
    message_ids: list[str] | None = None
    sender_id: UserId | None = None


class GetHistory(Payload):
    peer_id: UserId | None = None
    limit: int | None = None
    offset: int = 0


# Signaling events
class SignalJoin(Payload):
    room: str


class SignalOffer(Payload):
    room: str
    sdp: Any = None
    sender: Any = Field(default=None, alias="from")


class SignalAnswer(Payload):
    room: str
    sdp: Any = None
    sender: Any = Field(default=None, alias="from")


class SignalIce(Payload):
    room: str
    candidate: Any = None
    sender: Any = Field(default=None, alias="from")


class ChatMessage(BaseModel):
    """A persisted chat message.

    ``id`` and ``created_at`` are assigned by the store on append. Edit and
    soft-delete fields are carried but no event modifies them.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str | None = None
    room: str
    sender_id: str
    receiver_id: str
    content: str
    message_type: MessageType = MessageType.TEXT
    is_read: bool = False
    read_at: datetime | None = None
    is_deleted: bool = False
    created_at: datetime | None = None
    edited_at: datetime | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
