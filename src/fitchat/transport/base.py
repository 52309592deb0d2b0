"""Transport protocol: connections, rooms and fan-out."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Transport(Protocol):
    """Delivers named events to connections and rooms.

    Room membership lives here, not in application code. Emits to a
    connection that has gone away are dropped silently.
    """

    async def emit(
        self,
        event: str,
        data: Any,
        *,
        to: str | None = None,
        room: str | None = None,
        skip_sid: str | None = None,
    ) -> None:
        """Emit to one connection (``to``), a room, or everyone if neither."""
        ...

    async def enter_room(self, sid: str, room: str) -> None: ...

    async def leave_room(self, sid: str, room: str) -> None: ...
