"""Tests for SQLMessageStore on SQLite."""

from collections.abc import AsyncGenerator

import aiosqlite
import pytest

from fitchat.config import StoreConfig
from fitchat.models import ChatMessage, MessageType
from fitchat.store import PostgresDialect, SQLiteDialect, SQLMessageStore

pytestmark = pytest.mark.anyio

ROOM = "1:2"
MESSAGE_COUNT = 3


@pytest.fixture
async def sqlite_connection() -> AsyncGenerator[aiosqlite.Connection, None]:
    """Create an in-memory SQLite connection for testing."""
    conn = await aiosqlite.connect(":memory:")
    try:
        yield conn
    finally:
        await conn.close()


@pytest.fixture
async def sql_store(
    sqlite_connection: aiosqlite.Connection,
) -> AsyncGenerator[SQLMessageStore, None]:
    async with SQLMessageStore(
        sqlite_connection, SQLiteDialect(), StoreConfig(table_name="test_messages")
    ) as store:
        yield store


def make_message(content: str, sender: str = "1", receiver: str = "2") -> ChatMessage:
    return ChatMessage(
        room=ROOM, sender_id=sender, receiver_id=receiver, content=content
    )


async def test_append_returns_id_and_timestamp(sql_store: SQLMessageStore) -> None:
    stored = await sql_store.append(make_message("hello"))
    assert stored.id == "1"
    assert stored.created_at is not None


async def test_query_round_trips_fields(sql_store: SQLMessageStore) -> None:
    await sql_store.append(
        ChatMessage(
            room=ROOM,
            sender_id="1",
            receiver_id="2",
            content="look",
            message_type=MessageType.IMAGE,
        )
    )
    [msg] = await sql_store.query(ROOM, limit=10)
    assert msg.content == "look"
    assert msg.message_type is MessageType.IMAGE
    assert msg.sender_id == "1"
    assert msg.receiver_id == "2"
    assert msg.is_read is False
    assert msg.is_deleted is False


async def test_query_newest_first(sql_store: SQLMessageStore) -> None:
    for i in range(MESSAGE_COUNT):
        await sql_store.append(make_message(f"msg-{i}"))

    messages = await sql_store.query(ROOM, limit=10)
    assert [m.content for m in messages] == ["msg-2", "msg-1", "msg-0"]


async def test_query_limit_and_offset(sql_store: SQLMessageStore) -> None:
    for i in range(MESSAGE_COUNT):
        await sql_store.append(make_message(f"msg-{i}"))

    messages = await sql_store.query(ROOM, limit=1, offset=1)
    assert [m.content for m in messages] == ["msg-1"]


async def test_query_is_scoped_to_room(sql_store: SQLMessageStore) -> None:
    await sql_store.append(make_message("ours"))
    await sql_store.append(
        ChatMessage(room="3:4", sender_id="3", receiver_id="4", content="theirs")
    )
    assert [m.content for m in await sql_store.query(ROOM, limit=10)] == ["ours"]


async def test_query_before_any_append_creates_table(
    sql_store: SQLMessageStore,
) -> None:
    assert await sql_store.query(ROOM, limit=10) == []


async def test_mark_read_persists(sql_store: SQLMessageStore) -> None:
    to_bob = await sql_store.append(make_message("for bob"))
    to_alice = await sql_store.append(make_message("for alice", "2", "1"))
    assert to_bob.id is not None
    assert to_alice.id is not None

    updated = await sql_store.mark_read(ROOM, [to_bob.id, to_alice.id, "junk"], "2")
    assert updated == 1

    by_content = {m.content: m for m in await sql_store.query(ROOM, limit=10)}
    assert by_content["for bob"].is_read
    assert by_content["for bob"].read_at is not None
    assert not by_content["for alice"].is_read


async def test_mark_read_without_numeric_ids_is_noop(
    sql_store: SQLMessageStore,
) -> None:
    assert await sql_store.mark_read(ROOM, ["abc"], "2") == 0


async def test_append_after_close_raises(sql_store: SQLMessageStore) -> None:
    await sql_store.close()
    with pytest.raises(RuntimeError, match="closed"):
        await sql_store.append(make_message("late"))


class TestDialects:
    def test_sqlite_quotes_table_name(self) -> None:
        queries = SQLiteDialect().queries_for_table('odd"name')
        assert '"odd""name"' in queries.create_table

    def test_postgres_uses_numbered_params_and_returning(self) -> None:
        dialect = PostgresDialect()
        queries = dialect.queries_for_table("chat_messages")
        assert dialect.returning_insert
        assert "RETURNING id" in queries.insert
        assert "$1" in queries.select_page
        assert "ANY($4::bigint[])" in queries.mark_read
