"""Handler types passed to the delivery loop."""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol, Union

from indexer_sdk.models.events import RawEvent


class ConsumerHandler(Protocol):
    """Receives one decoded event per queue message.

    Returning normally acknowledges the message; raising leaves it
    unacknowledged for redelivery. Plain functions and coroutine functions
    are both accepted.
    """

    def __call__(
        self, subject: str, sequence: int, event: RawEvent
    ) -> Union[None, Awaitable[None]]:
        ...


HandlerCancelFunc = Callable[[], Awaitable[None]]
Middleware = Callable[[ConsumerHandler], ConsumerHandler]
