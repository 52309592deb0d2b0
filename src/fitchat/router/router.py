"""Event router: validates inbound payloads and dispatches to handlers."""

import logging
from dataclasses import dataclass
from typing import Any

import pydantic

from fitchat.errors import ChatError, SessionClosed, ValidationError
from fitchat.router.types import (
    ErrorReporter,
    EventContext,
    HandlerFunc,
    Middleware,
)

logger = logging.getLogger(__name__)


@dataclass
class Route:
    """Configuration for one named event."""

    event: str
    payload_type: type[pydantic.BaseModel]
    handler_func: HandlerFunc


class EventRouter:
    """Routes named events to handlers through a middleware chain.

    Payloads are validated against the route's pydantic model before the
    handler runs. ``ChatError`` raised anywhere in the chain is passed to
    ``on_error`` for the offending connection; other exceptions propagate.
    Middlewares wrap in registration order, so the first one added is the
    outermost.
    """

    def __init__(self, on_error: ErrorReporter | None = None) -> None:
        self._routes: dict[str, Route] = {}
        self._middlewares: list[Middleware] = []
        self._on_error = on_error

    def add_handler(
        self,
        event: str,
        payload_type: type[pydantic.BaseModel],
        handler_func: HandlerFunc,
    ) -> None:
        if event in self._routes:
            msg = f"Handler for {event!r} already registered"
            raise ValueError(msg)
        self._routes[event] = Route(event, payload_type, handler_func)

    def add_middleware(self, middleware: Middleware) -> None:
        self._middlewares.append(middleware)

    @property
    def events(self) -> list[str]:
        return list(self._routes)

    def _build_chain(self, handler: HandlerFunc) -> HandlerFunc:
        for middleware in reversed(self._middlewares):
            handler = middleware(handler)
        return handler

    async def dispatch(self, event: str, sid: str, data: Any = None) -> None:
        route = self._routes.get(event)
        if route is None:
            logger.warning("No handler for event %s from %s", event, sid)
            return

        try:
            payload = _parse(route.payload_type, data)
            ctx = EventContext(event=event, sid=sid, payload=payload, raw=data)
            await self._build_chain(route.handler_func)(ctx)
        except SessionClosed:
            logger.debug("Dropped %s from closed connection %s", event, sid)
        except ChatError as e:
            if self._on_error is None:
                raise
            await self._on_error(sid, e)


def _parse(payload_type: type[pydantic.BaseModel], data: Any) -> pydantic.BaseModel:
    try:
        return payload_type.model_validate(data if data is not None else {})
    except pydantic.ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError("Invalid payload", details=details) from e
