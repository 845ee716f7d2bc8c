"""Handler middleware composition."""

from __future__ import annotations

import inspect
import logging
import time

from indexer_sdk.interfaces.handler import ConsumerHandler, Middleware
from indexer_sdk.models.events import RawEvent

log = logging.getLogger(__name__)


async def invoke_handler(
    handler: ConsumerHandler, subject: str, sequence: int, event: RawEvent
) -> None:
    """Call ``handler`` and await its result when it returns an awaitable."""
    result = handler(subject, sequence, event)
    if inspect.isawaitable(result):
        await result


def apply_middleware(handler: ConsumerHandler, *middlewares: Middleware) -> ConsumerHandler:
    """Wrap ``handler`` so that the first middleware runs outermost."""
    for mw in reversed(middlewares):
        handler = mw(handler)
    return handler


def log_events(handler: ConsumerHandler) -> ConsumerHandler:
    """Middleware that logs each delivery and how long the handler took."""

    async def _wrapped(subject: str, sequence: int, event: RawEvent) -> None:
        start = time.monotonic()
        await invoke_handler(handler, subject, sequence, event)
        duration = int((time.monotonic() - start) * 1000)
        log.info(
            "Handled %s on %s (sequence %d) in %dms",
            event.event_id, subject, sequence, duration,
        )

    return _wrapped
