"""Tests for room key derivation."""

import pytest

from fitchat.rooms import ROOM_DELIMITER, room_key


class TestRoomKey:
    @pytest.mark.parametrize(
        ("a", "b"),
        [("1", "2"), ("alice", "bob"), ("42", "7"), ("x", "x")],
    )
    def test_commutative(self, a: str, b: str) -> None:
        assert room_key(a, b) == room_key(b, a)

    def test_sorted_and_joined(self) -> None:
        assert room_key("2", "1") == "1:2"

    def test_numeric_ids_are_keyed_as_strings(self) -> None:
        assert room_key(1, 2) == room_key("1", "2") == "1:2"

    def test_sorting_is_lexicographic(self) -> None:
        # "10" < "9" as strings; both sides still agree
        assert room_key("9", "10") == "10:9"
        assert room_key("10", "9") == "10:9"

    def test_uses_delimiter(self) -> None:
        assert ROOM_DELIMITER in room_key("a", "b")
