"""Transport backed by a python-socketio AsyncServer."""

from typing import Any

import socketio


class SocketIOTransport:
    """Adapts ``socketio.AsyncServer`` to the Transport protocol.

    Socket.IO rooms provide the group membership; a disconnected socket is
    removed from all of its rooms by the server itself.
    """

    def __init__(self, server: socketio.AsyncServer, namespace: str = "/") -> None:
        self._server = server
        self._namespace = namespace

    @property
    def server(self) -> socketio.AsyncServer:
        return self._server

    async def emit(
        self,
        event: str,
        data: Any,
        *,
        to: str | None = None,
        room: str | None = None,
        skip_sid: str | None = None,
    ) -> None:
        await self._server.emit(
            event,
            data,
            to=to if to is not None else room,
            skip_sid=skip_sid,
            namespace=self._namespace,
        )

    async def enter_room(self, sid: str, room: str) -> None:
        await self._server.enter_room(sid, room, namespace=self._namespace)

    async def leave_room(self, sid: str, room: str) -> None:
        await self._server.leave_room(sid, room, namespace=self._namespace)
