"""Event routing layer."""

from fitchat.router.middleware import (
    metrics_middleware,
    recoverer,
    timeout,
    tracing,
)
from fitchat.router.router import EventRouter, Route
from fitchat.router.types import ErrorReporter, EventContext, HandlerFunc, Middleware

__all__ = [
    "ErrorReporter",
    "EventContext",
    "EventRouter",
    "HandlerFunc",
    "Middleware",
    "Route",
    "metrics_middleware",
    "recoverer",
    "timeout",
    "tracing",
]
