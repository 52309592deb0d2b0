"""Tests for PresenceRegistry."""

from fitchat.presence import PresenceEntry, PresenceRegistry


class TestPresenceRegistry:
    def test_set_and_get(self) -> None:
        registry = PresenceRegistry()
        entry = PresenceEntry(sid="s1", username="Alice")
        registry.set("1", entry)
        assert registry.get("1") is entry
        assert "1" in registry
        assert registry.is_online("1")

    def test_get_missing_returns_none(self) -> None:
        assert PresenceRegistry().get("nobody") is None

    def test_set_overwrites_previous_connection(self) -> None:
        registry = PresenceRegistry()
        registry.set("1", PresenceEntry(sid="old"))
        registry.set("1", PresenceEntry(sid="new"))
        assert len(registry) == 1
        entry = registry.get("1")
        assert entry is not None
        assert entry.sid == "new"

    def test_remove_is_total(self) -> None:
        registry = PresenceRegistry()
        registry.remove("missing")  # Should not raise
        registry.set("1", PresenceEntry(sid="s1"))
        registry.remove("1")
        assert registry.get("1") is None

    def test_remove_if_owner_only_removes_matching_sid(self) -> None:
        registry = PresenceRegistry()
        registry.set("1", PresenceEntry(sid="new"))
        assert not registry.remove_if_owner("1", "old")
        assert registry.is_online("1")
        assert registry.remove_if_owner("1", "new")
        assert not registry.is_online("1")

    def test_all_and_online_users(self) -> None:
        registry = PresenceRegistry()
        registry.set("1", PresenceEntry(sid="s1", username="Alice"))
        registry.set("2", PresenceEntry(sid="s2", username="Bob"))

        assert {e.sid for e in registry.all()} == {"s1", "s2"}
        users = {u["userId"]: u for u in registry.online_users()}
        assert users["1"]["username"] == "Alice"
        assert "lastSeen" in users["2"]

    def test_registries_are_independent(self) -> None:
        first = PresenceRegistry()
        second = PresenceRegistry()
        first.set("1", PresenceEntry(sid="s1"))
        assert second.get("1") is None
