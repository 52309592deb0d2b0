"""Message store protocol and the timeout guard around it."""

from collections.abc import Awaitable, Callable, Sequence
from types import TracebackType
from typing import Protocol, TypeVar, runtime_checkable

import anyio

from fitchat.errors import StoreUnavailable
from fitchat.models import ChatMessage

T = TypeVar("T")


@runtime_checkable
class MessageStore(Protocol):
    """Append-only persistence of chat messages keyed by room."""

    async def append(self, message: ChatMessage) -> ChatMessage:
        """Persist a message, returning it with ``id`` and ``created_at`` set."""
        ...

    async def query(self, room: str, limit: int, offset: int = 0) -> list[ChatMessage]:
        """Return up to ``limit`` messages for a room, newest first."""
        ...

    async def mark_read(
        self, room: str, message_ids: Sequence[str], reader_id: str
    ) -> int:
        """Flag messages addressed to ``reader_id`` as read. Returns the count."""
        ...

    async def close(self) -> None:
        """Release the store."""
        ...


class TimeoutMessageStore:
    """Bounds every store call and normalizes failures to StoreUnavailable.

    A hung backend surfaces as ``StoreUnavailable`` after ``seconds`` instead of
    stalling the handler that awaits it.
    """

    def __init__(self, store: MessageStore, seconds: float) -> None:
        self._store = store
        self._seconds = seconds

    @property
    def inner(self) -> MessageStore:
        return self._store

    async def _call(self, name: str, op: Callable[[], Awaitable[T]]) -> T:
        try:
            with anyio.fail_after(self._seconds):
                return await op()
        except StoreUnavailable:
            raise
        except TimeoutError as e:
            msg = f"Message store timed out during {name}"
            raise StoreUnavailable(msg, details=f"no reply in {self._seconds}s") from e
        except Exception as e:
            msg = f"Message store failed during {name}"
            raise StoreUnavailable(msg, details=str(e)) from e

    async def append(self, message: ChatMessage) -> ChatMessage:
        return await self._call("append", lambda: self._store.append(message))

    async def query(self, room: str, limit: int, offset: int = 0) -> list[ChatMessage]:
        return await self._call(
            "query", lambda: self._store.query(room, limit, offset)
        )

    async def mark_read(
        self, room: str, message_ids: Sequence[str], reader_id: str
    ) -> int:
        return await self._call(
            "mark_read", lambda: self._store.mark_read(room, message_ids, reader_id)
        )

    async def close(self) -> None:
        await self._store.close()

    async def __aenter__(self) -> "TimeoutMessageStore":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
