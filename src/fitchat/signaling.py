"""WebRTC signaling relay."""

from typing import Any

from fitchat.transport import Transport


class SignalingRelay:
    """Forwards offer/answer/ICE payloads to the other members of a room.

    Stateless beyond the room membership the transport already tracks.
    """

    def __init__(self, transport: Transport, prefix: str = "webrtc:") -> None:
        self._transport = transport
        self._prefix = prefix

    async def _relay(self, sid: str, room: str, name: str, data: dict[str, Any]) -> None:
        await self._transport.emit(self._prefix + name, data, room=room, skip_sid=sid)

    async def join_room(self, sid: str, room: str) -> None:
        await self._transport.enter_room(sid, room)

    async def offer(self, sid: str, room: str, sdp: Any, sender: Any) -> None:
        await self._relay(sid, room, "offer", {"sdp": sdp, "from": sender})

    async def answer(self, sid: str, room: str, sdp: Any, sender: Any) -> None:
        await self._relay(sid, room, "answer", {"sdp": sdp, "from": sender})

    async def ice_candidate(
        self, sid: str, room: str, candidate: Any, sender: Any
    ) -> None:
        await self._relay(sid, room, "ice", {"candidate": candidate, "from": sender})
