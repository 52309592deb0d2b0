"""Built-in middlewares."""

import logging
import time
from typing import Any

import anyio
from opentelemetry import metrics, trace
from opentelemetry.metrics import MeterProvider
from opentelemetry.trace import SpanKind, Status, StatusCode, TracerProvider

from fitchat.errors import ChatError
from fitchat.router.types import EventContext, HandlerFunc, Middleware

INSTRUMENTATION_NAME = "fitchat"


def recoverer(
    logger: logging.Logger | None = None,
) -> Middleware:
    """Middleware that logs unexpected handler failures and reports them.

    ``ChatError`` passes through untouched. Anything else is logged with its
    traceback and replaced by a generic ``ChatError`` so the connection
    stays open.
    """
    log = logger or logging.getLogger("fitchat.router")

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        async def handler(ctx: EventContext) -> None:
            try:
                await next_handler(ctx)
            except ChatError:
                raise
            except Exception as e:
                log.exception("Handler failed for %s from %s", ctx.event, ctx.sid)
                msg = f"Failed to handle {ctx.event}"
                raise ChatError(msg) from e

        return handler

    return middleware


def timeout(seconds: float) -> Middleware:
    """Middleware that cancels handler if it takes too long."""

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        async def handler(ctx: EventContext) -> None:
            with anyio.fail_after(seconds):
                await next_handler(ctx)

        return handler

    return middleware


def tracing(
    tracer_provider: TracerProvider | None = None,
    messaging_system: str = INSTRUMENTATION_NAME,
) -> Middleware:
    """Middleware that creates a span per handled event.

    Example:
        router.add_middleware(tracing())
    """
    provider = tracer_provider or trace.get_tracer_provider()
    tracer = provider.get_tracer(INSTRUMENTATION_NAME)

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        async def handler(ctx: EventContext) -> None:
            attributes: dict[str, str] = {
                "messaging.system": messaging_system,
                "messaging.operation.name": "process",
                "messaging.destination.name": ctx.event,
                "fitchat.sid": ctx.sid,
            }

            with tracer.start_as_current_span(
                f"process {ctx.event}",
                kind=SpanKind.SERVER,
                attributes=attributes,
            ) as span:
                try:
                    await next_handler(ctx)
                    span.set_status(Status(StatusCode.OK))
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.set_attribute("error.type", type(e).__name__)
                    raise

        return handler

    return middleware


def metrics_middleware(
    meter_provider: MeterProvider | None = None,
    messaging_system: str = INSTRUMENTATION_NAME,
) -> Middleware:
    """Create a metrics middleware for event handling.

    Tracks:
    - fitchat.event.duration: Handling time histogram
    - fitchat.events.handled: Handled event count
    """
    provider = meter_provider or metrics.get_meter_provider()
    meter = provider.get_meter(INSTRUMENTATION_NAME)

    duration_histogram = meter.create_histogram(
        "fitchat.event.duration",
        unit="s",
        description="Duration of event handling",
    )
    handled_counter = meter.create_counter(
        "fitchat.events.handled",
        unit="{event}",
        description="Number of inbound events handled",
    )

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        async def wrapper(ctx: EventContext) -> None:
            attributes: dict[str, Any] = {
                "messaging.system": messaging_system,
                "messaging.destination.name": ctx.event,
            }

            start = time.perf_counter()
            try:
                await next_handler(ctx)
            except Exception as e:
                attributes["error.type"] = type(e).__name__
                raise
            finally:
                handled_counter.add(1, attributes)
                duration_histogram.record(time.perf_counter() - start, attributes)

        return wrapper

    return middleware
