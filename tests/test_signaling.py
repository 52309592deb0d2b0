"""Tests for the WebRTC signaling relay."""

import pytest

from fitchat import ChatServer, InMemoryTransport, SignalingRelay

pytestmark = pytest.mark.anyio

ROOM = "call-1"


@pytest.fixture
def relay(transport: InMemoryTransport) -> SignalingRelay:
    for sid in ("caller", "callee", "bystander"):
        transport.connect(sid)
    return SignalingRelay(transport)


class TestSignalingRelay:
    async def test_offer_reaches_others_in_room_only(
        self, relay: SignalingRelay, transport: InMemoryTransport
    ) -> None:
        await relay.join_room("caller", ROOM)
        await relay.join_room("callee", ROOM)

        await relay.offer("caller", ROOM, "v=0 offer", "1")

        assert transport.received("callee", "webrtc:offer") == [
            {"sdp": "v=0 offer", "from": "1"}
        ]
        assert transport.received("caller") == []
        assert transport.received("bystander") == []

    async def test_answer_and_ice(
        self, relay: SignalingRelay, transport: InMemoryTransport
    ) -> None:
        await relay.join_room("caller", ROOM)
        await relay.join_room("callee", ROOM)

        await relay.answer("callee", ROOM, "v=0 answer", "2")
        candidate = {"candidate": "candidate:1 1 udp", "sdpMid": "0"}
        await relay.ice_candidate("callee", ROOM, candidate, "2")

        assert transport.received("caller", "webrtc:answer") == [
            {"sdp": "v=0 answer", "from": "2"}
        ]
        assert transport.received("caller", "webrtc:ice") == [
            {"candidate": candidate, "from": "2"}
        ]

    async def test_relay_to_empty_room_is_noop(
        self, relay: SignalingRelay, transport: InMemoryTransport
    ) -> None:
        await relay.offer("caller", "empty-room", "v=0", "1")
        assert transport.received("caller") == []


async def test_signaling_through_server(
    server: ChatServer, connect, transport: InMemoryTransport
) -> None:
    connect("caller")
    connect("callee")
    await server.dispatch("webrtc:join", "caller", {"room": ROOM})
    await server.dispatch("webrtc:join", "callee", {"room": ROOM})

    await server.dispatch(
        "webrtc:offer", "caller", {"room": ROOM, "sdp": "v=0", "from": "1"}
    )

    assert transport.received("callee", "webrtc:offer") == [{"sdp": "v=0", "from": "1"}]


async def test_signaling_requires_room(
    server: ChatServer, connect, transport: InMemoryTransport
) -> None:
    connect("caller")
    await server.dispatch("webrtc:offer", "caller", {"sdp": "v=0"})
    [error] = transport.received("caller", "chat:error")
    assert error["message"] == "Invalid payload"
