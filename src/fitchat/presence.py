"""In-memory presence registry."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class PresenceEntry:
    """Connection metadata for an online user."""

    sid: str
    username: str | None = None
    last_seen: datetime = field(default_factory=utcnow)


class PresenceRegistry:
    """Maps user ids to the connection currently representing them.

    Holds at most one entry per user. A second connection for the same user
    replaces the first (last writer wins). All operations are synchronous, so
    a lookup and the mutation that follows it never straddle an await.
    """

    def __init__(self) -> None:
        self._entries: dict[str, PresenceEntry] = {}

    def set(self, user_id: str, entry: PresenceEntry) -> None:
        self._entries[user_id] = entry

    def get(self, user_id: str) -> PresenceEntry | None:
        return self._entries.get(user_id)

    def remove(self, user_id: str) -> None:
        self._entries.pop(user_id, None)

    def remove_if_owner(self, user_id: str, sid: str) -> bool:
        """Remove the entry only if it still belongs to ``sid``.

        Returns True if an entry was removed.
        """
        entry = self._entries.get(user_id)
        if entry is None or entry.sid != sid:
            return False
        del self._entries[user_id]
        return True

    def all(self) -> list[PresenceEntry]:
        return list(self._entries.values())

    def is_online(self, user_id: str) -> bool:
        return user_id in self._entries

    def online_users(self) -> list[dict[str, Any]]:
        return [
            {
                "userId": user_id,
                "username": entry.username,
                "lastSeen": entry.last_seen.isoformat(),
            }
            for user_id, entry in self._entries.items()
        ]

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
