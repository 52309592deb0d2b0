"""SQL-backed message store."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from fitchat.config import StoreConfig
from fitchat.models import ChatMessage
from fitchat.presence import utcnow
from fitchat.store.dialect import COLUMNS, Dialect, DialectQueries

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class SQLMessageStore:
    """Message store over an async SQL connection."""

    def __init__(
        self,
        connection: Any,
        dialect: Dialect,
        config: StoreConfig | None = None,
    ) -> None:
        """Initialize the SQL message store.

        Args:
            connection: Async database connection or pool.
                For SQLite: aiosqlite.Connection
                For Postgres: asyncpg.Pool
            dialect: SQL dialect for query generation.
            config: Store configuration.
        """
        self._connection = connection
        self._dialect = dialect
        self._config = config or StoreConfig()
        self._queries: DialectQueries = dialect.queries_for_table(
            self._config.table_name
        )
        self._table_ready = False
        self._closed = False

    @property
    def _is_sqlite(self) -> bool:
        # aiosqlite exposes cursor(); asyncpg does not
        return hasattr(self._connection, "cursor")

    def _timestamp(self, value: datetime) -> Any:
        return value.isoformat() if self._is_sqlite else value

    async def _execute(self, query: str, params: Sequence[Any] = ()) -> Any:
        """Execute a query, handling dialect differences."""
        if self._is_sqlite:
            return await self._connection.execute(query, params)
        return await self._connection.execute(query, *params)

    async def _fetch(self, query: str, params: Sequence[Any]) -> list[Any]:
        if self._is_sqlite:
            async with self._connection.execute(query, params) as cursor:
                return list(await cursor.fetchall())
        return list(await self._connection.fetch(query, *params))

    async def _commit_if_needed(self) -> None:
        if hasattr(self._connection, "commit"):
            await self._connection.commit()

    async def _ensure_table(self) -> None:
        if self._table_ready or not self._config.auto_create_tables:
            return
        await self._execute(self._queries.create_table)
        await self._execute(self._queries.create_index)
        await self._commit_if_needed()
        self._table_ready = True
        logger.debug("Ensured message table %s", self._config.table_name)

    def _check_open(self) -> None:
        if self._closed:
            msg = "Store is closed"
            raise RuntimeError(msg)

    async def append(self, message: ChatMessage) -> ChatMessage:
        self._check_open()
        await self._ensure_table()

        created_at = utcnow()
        params = (
            message.room,
            message.sender_id,
            message.receiver_id,
            message.content,
            message.message_type.value,
            self._timestamp(created_at),
        )
        if self._dialect.returning_insert:
            new_id = await self._connection.fetchval(self._queries.insert, *params)
        else:
            cursor = await self._execute(self._queries.insert, params)
            new_id = cursor.lastrowid
        await self._commit_if_needed()

        return message.model_copy(update={"id": str(new_id), "created_at": created_at})

    async def query(self, room: str, limit: int, offset: int = 0) -> list[ChatMessage]:
        self._check_open()
        await self._ensure_table()
        rows = await self._fetch(self._queries.select_page, (room, limit, offset))
        return [_row_to_message(row) for row in rows]

    async def mark_read(
        self, room: str, message_ids: Sequence[str], reader_id: str
    ) -> int:
        self._check_open()
        await self._ensure_table()

        numeric_ids = [int(i) for i in message_ids if str(i).isdigit()]
        if not numeric_ids:
            return 0

        read_at = self._timestamp(utcnow())
        if self._is_sqlite:
            params: tuple[Any, ...] = (read_at, room, reader_id, json.dumps(numeric_ids))
            cursor = await self._execute(self._queries.mark_read, params)
            updated = cursor.rowcount
        else:
            status = await self._execute(
                self._queries.mark_read, (read_at, room, reader_id, numeric_ids)
            )
            # asyncpg returns a status string such as "UPDATE 3"
            updated = int(status.rsplit(" ", 1)[-1])
        await self._commit_if_needed()
        return updated

    async def close(self) -> None:
        """Close the store. The connection itself is owned by the caller."""
        self._closed = True

    async def __aenter__(self) -> SQLMessageStore:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()


def _row_to_message(row: Any) -> ChatMessage:
    record = dict(zip(COLUMNS, row, strict=True))
    record["id"] = str(record["id"])
    return ChatMessage.model_validate(record)
