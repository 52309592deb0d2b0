"""Type definitions for the event router."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel


@dataclass
class EventContext:
    """One inbound event on its way to a handler."""

    event: str
    sid: str
    payload: BaseModel
    raw: Any = None
    metadata: dict[str, Any] = field(default_factory=dict)


HandlerFunc = Callable[[EventContext], Awaitable[None]]
Middleware = Callable[[HandlerFunc], HandlerFunc]
ErrorReporter = Callable[[str, Exception], Awaitable[None]]
