"""Room key derivation for two-party conversations."""

ROOM_DELIMITER = ":"


def room_key(id_a: str | int, id_b: str | int) -> str:
    """Return the room shared by two users.

    Both participants compute the same key without coordination:
    ``room_key(a, b) == room_key(b, a)``.
    """
    return ROOM_DELIMITER.join(sorted((str(id_a), str(id_b))))
