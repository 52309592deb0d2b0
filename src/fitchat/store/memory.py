"""In-memory message store."""

import itertools
from collections.abc import Sequence
from types import TracebackType

from fitchat.models import ChatMessage
from fitchat.presence import utcnow


class InMemoryMessageStore:
    """Keeps messages in per-room lists in insertion order.

    Suitable for tests and single-process development. Ids are monotonic
    integers rendered as strings. Callers always get copies, never the
    stored records.

    ``fail_with`` makes every subsequent call raise the given exception,
    which is how tests simulate an unreachable backend.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, list[ChatMessage]] = {}
        self._ids = itertools.count(1)
        self._closed = False
        self.fail_with: Exception | None = None

    def _check(self) -> None:
        if self._closed:
            msg = "Store is closed"
            raise RuntimeError(msg)
        if self.fail_with is not None:
            raise self.fail_with

    async def append(self, message: ChatMessage) -> ChatMessage:
        self._check()
        stored = message.model_copy(
            update={"id": str(next(self._ids)), "created_at": utcnow()}
        )
        self._rooms.setdefault(stored.room, []).append(stored)
        return stored.model_copy()

    async def query(self, room: str, limit: int, offset: int = 0) -> list[ChatMessage]:
        self._check()
        visible = [m for m in self._rooms.get(room, []) if not m.is_deleted]
        newest_first = list(reversed(visible))
        return [m.model_copy() for m in newest_first[offset : offset + limit]]

    async def mark_read(
        self, room: str, message_ids: Sequence[str], reader_id: str
    ) -> int:
        self._check()
        wanted = set(message_ids)
        now = utcnow()
        updated = 0
        for message in self._rooms.get(room, []):
            if (
                message.id in wanted
                and message.receiver_id == reader_id
                and not message.is_read
            ):
                message.is_read = True
                message.read_at = now
                updated += 1
        return updated

    def count(self, room: str | None = None) -> int:
        """Number of stored messages, in one room or overall."""
        if room is not None:
            return len(self._rooms.get(room, []))
        return sum(len(messages) for messages in self._rooms.values())

    async def close(self) -> None:
        self._closed = True

    async def __aenter__(self) -> "InMemoryMessageStore":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
