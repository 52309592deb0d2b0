"""Persistence of chat messages."""

from fitchat.store.base import MessageStore, TimeoutMessageStore
from fitchat.store.dialect import Dialect, PostgresDialect, SQLiteDialect
from fitchat.store.memory import InMemoryMessageStore
from fitchat.store.sql import SQLMessageStore

__all__ = [
    "Dialect",
    "InMemoryMessageStore",
    "MessageStore",
    "PostgresDialect",
    "SQLMessageStore",
    "SQLiteDialect",
    "TimeoutMessageStore",
]
