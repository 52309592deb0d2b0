"""In-memory transport."""

from collections import defaultdict
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Delivery:
    """One event as received by one connection."""

    event: str
    data: Any


class InMemoryTransport:
    """Transport that records deliveries per connection.

    Used by tests and for driving sessions without a network. Every
    connected sid has an inbox; fan-out appends to the inbox of each
    recipient.
    """

    def __init__(self) -> None:
        self._inboxes: dict[str, list[Delivery]] = {}
        self._rooms: defaultdict[str, set[str]] = defaultdict(set)

    def connect(self, sid: str) -> None:
        self._inboxes.setdefault(sid, [])

    def disconnect(self, sid: str) -> None:
        """Drop the connection and all its room memberships."""
        self._inboxes.pop(sid, None)
        for room in list(self._rooms):
            self._rooms[room].discard(sid)
            if not self._rooms[room]:
                del self._rooms[room]

    def is_connected(self, sid: str) -> bool:
        return sid in self._inboxes

    async def emit(
        self,
        event: str,
        data: Any,
        *,
        to: str | None = None,
        room: str | None = None,
        skip_sid: str | None = None,
    ) -> None:
        if to is not None:
            recipients = {to}
        elif room is not None:
            recipients = set(self._rooms.get(room, ()))
        else:
            recipients = set(self._inboxes)

        for sid in recipients:
            if sid == skip_sid:
                continue
            inbox = self._inboxes.get(sid)
            if inbox is None:
                continue  # closed connection
            inbox.append(Delivery(event, data))

    async def enter_room(self, sid: str, room: str) -> None:
        if sid in self._inboxes:
            self._rooms[room].add(sid)

    async def leave_room(self, sid: str, room: str) -> None:
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(sid)
        if not members:
            del self._rooms[room]

    def members(self, room: str) -> set[str]:
        return set(self._rooms.get(room, ()))

    def received(self, sid: str, event: str | None = None) -> list[Any]:
        """Payloads delivered to ``sid``, optionally filtered by event name."""
        return [
            d.data
            for d in self._inboxes.get(sid, [])
            if event is None or d.event == event
        ]

    def events(self, sid: str) -> list[str]:
        return [d.event for d in self._inboxes.get(sid, [])]

    def clear(self, sid: str | None = None) -> None:
        """Empty one inbox, or all of them."""
        targets = [sid] if sid is not None else list(self._inboxes)
        for target in targets:
            if target in self._inboxes:
                self._inboxes[target].clear()
