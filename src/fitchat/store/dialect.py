"""SQL dialect abstraction for the message table."""

from dataclasses import dataclass
from typing import Protocol

COLUMNS = (
    "id",
    "room",
    "sender_id",
    "receiver_id",
    "content",
    "message_type",
    "is_read",
    "read_at",
    "is_deleted",
    "created_at",
    "edited_at",
)


@dataclass(frozen=True)
class DialectQueries:
    """Pre-generated SQL queries for the message table."""

    create_table: str
    create_index: str
    insert: str
    select_page: str
    mark_read: str


class Dialect(Protocol):
    """Protocol for SQL dialect differences."""

    returning_insert: bool
    """True if ``insert`` yields the new id through ``RETURNING``."""

    def queries_for_table(self, table_name: str) -> DialectQueries:
        """Generate all queries for the given table."""
        ...


def _quote(name: str) -> str:
    # Double any existing double quotes and wrap in double quotes
    return '"' + name.replace('"', '""') + '"'


_SELECT_COLUMNS = ", ".join(COLUMNS)


class SQLiteDialect:
    """SQLite dialect using aiosqlite.

    Timestamps are stored as ISO-8601 text in UTC, which sorts correctly as
    strings. ``mark_read`` takes the id list as a JSON array.
    """

    returning_insert = False

    def queries_for_table(self, table_name: str) -> DialectQueries:
        t = _quote(table_name)
        idx = _quote(f"idx_{table_name}_room_created")
        return DialectQueries(
            create_table=f"""
                CREATE TABLE IF NOT EXISTS {t} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    room TEXT NOT NULL,
                    sender_id TEXT NOT NULL,
                    receiver_id TEXT NOT NULL,
                    content TEXT NOT NULL,
                    message_type TEXT NOT NULL DEFAULT 'text',
                    is_read INTEGER NOT NULL DEFAULT 0,
                    read_at TEXT,
                    is_deleted INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    edited_at TEXT
                )
            """,
            create_index=f"""
                CREATE INDEX IF NOT EXISTS {idx}
                ON {t} (room, created_at)
            """,
            insert=f"""
                INSERT INTO {t}
                    (room, sender_id, receiver_id, content, message_type, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """,
            select_page=f"""
                SELECT {_SELECT_COLUMNS}
                FROM {t}
                WHERE room = ? AND is_deleted = 0
                ORDER BY created_at DESC, id DESC
                LIMIT ? OFFSET ?
            """,
            mark_read=f"""
                UPDATE {t}
                SET is_read = 1, read_at = ?
                WHERE room = ?
                  AND receiver_id = ?
                  AND is_read = 0
                  AND id IN (SELECT value FROM json_each(?))
            """,
        )


class PostgresDialect:
    """PostgreSQL dialect using asyncpg."""

    returning_insert = True

    def queries_for_table(self, table_name: str) -> DialectQueries:
        t = _quote(table_name)
        idx = _quote(f"idx_{table_name}_room_created")
        return DialectQueries(
            create_table=f"""
                CREATE TABLE IF NOT EXISTS {t} (
                    id BIGSERIAL PRIMARY KEY,
                    room VARCHAR(255) NOT NULL,
                    sender_id VARCHAR(255) NOT NULL,
                    receiver_id VARCHAR(255) NOT NULL,
                    content TEXT NOT NULL,
                    message_type VARCHAR(16) NOT NULL DEFAULT 'text',
                    is_read BOOLEAN NOT NULL DEFAULT FALSE,
                    read_at TIMESTAMPTZ,
                    is_deleted BOOLEAN NOT NULL DEFAULT FALSE,
                    created_at TIMESTAMPTZ NOT NULL,
                    edited_at TIMESTAMPTZ
                )
            """,
            create_index=f"""
                CREATE INDEX IF NOT EXISTS {idx}
                ON {t} (room, created_at DESC)
            """,
            insert=f"""
                INSERT INTO {t}
                    (room, sender_id, receiver_id, content, message_type, created_at)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING id
            """,
            select_page=f"""
                SELECT {_SELECT_COLUMNS}
                FROM {t}
                WHERE room = $1 AND NOT is_deleted
                ORDER BY created_at DESC, id DESC
                LIMIT $2 OFFSET $3
            """,
            mark_read=f"""
                UPDATE {t}
                SET is_read = TRUE, read_at = $1
                WHERE room = $2
                  AND receiver_id = $3
                  AND NOT is_read
                  AND id = ANY($4::bigint[])
            """,
        )
