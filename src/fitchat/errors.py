"""Errors reported to clients on the uniform error event."""

from typing import Any


class ChatError(Exception):
    """Base class for errors surfaced to the offending connection.

    None of these close the connection; the router turns them into a single
    ``error`` event sent to the caller only.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(ChatError):
    """Missing, empty or oversized fields."""


class AuthenticationRequired(ChatError):
    """Action attempted before a successful authenticate."""

    def __init__(
        self,
        message: str = "Please authenticate first",
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)


class IdentityMismatch(ChatError):
    """The claimed sender is not the connection's authenticated user."""

    def __init__(
        self,
        message: str = "Sender ID must match authenticated user",
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)


class StoreUnavailable(ChatError):
    """The message store could not be reached or timed out.

    Never retried by the server. Clients may resend.
    """


class SessionClosed(ChatError):
    """Event received after the connection was torn down."""

    def __init__(
        self,
        message: str = "Connection is closed",
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
