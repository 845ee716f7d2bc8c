"""SDK entry point - wires options, registration, and event delivery together."""

from __future__ import annotations

import logging
from typing import Sequence

from indexer_sdk.api.registration import RegistrationClient
from indexer_sdk.broker.jetstream import JetStreamConsumer, Subscription
from indexer_sdk.config import OptionFn, build_options
from indexer_sdk.interfaces.handler import ConsumerHandler, HandlerCancelFunc, Middleware
from indexer_sdk.interfaces.registrar import Registrar
from indexer_sdk.models.config import Configuration, SDKOptions
from indexer_sdk.models.events import RegisterResponse

log = logging.getLogger(__name__)


class IndexerSDK:
    """Client for the event indexer.

    Options are resolved once at construction (environment defaults, then
    ``option_fns`` in order) and never change afterwards.

        sdk = IndexerSDK(with_api("https://indexer.example.com"))
        await sdk.configure(config)
        cancel = await sdk.register_handler("my_app", "project:uri", handle)
        ...
        await cancel()
    """

    def __init__(self, *option_fns: OptionFn, options: SDKOptions | None = None) -> None:
        self._opts = options if options is not None else build_options(*option_fns)
        self.registrar: Registrar = RegistrationClient(self._opts)
        self.consumer = JetStreamConsumer(self._opts)
        self._subscriptions: list[Subscription] = []

    @property
    def options(self) -> SDKOptions:
        return self._opts

    async def configure(self, config: Configuration) -> RegisterResponse:
        """Register ``config`` with the indexer and return its hash."""
        log.debug("configure app_name=%s", config.app_name)
        return await self.registrar.configure(config)

    async def register_handler(
        self,
        name: str,
        subject: str,
        handler: ConsumerHandler,
        middlewares: Sequence[Middleware] = (),
    ) -> HandlerCancelFunc:
        """Deliver events matching ``subject`` to ``handler`` via durable consumer ``name``.

        Opens a dedicated connection. Returns a coroutine function that
        deletes the consumer and stops delivery.
        """
        log.debug("register handler app_name=%s subject=%s", name, subject)
        sub = await self.consumer.register(name, subject, handler, middlewares)
        # Drop subscriptions whose connection closed under them
        self._subscriptions = [s for s in self._subscriptions if s.running]
        self._subscriptions.append(sub)

        async def cancel() -> None:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)
            await sub.cancel()

        return cancel

    async def close(self) -> None:
        """Cancel every subscription registered through this instance that is still delivering."""
        subs, self._subscriptions = self._subscriptions, []
        for sub in subs:
            if sub.running:
                await sub.cancel()

    async def __aenter__(self) -> IndexerSDK:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def new_sdk(*option_fns: OptionFn) -> IndexerSDK:
    """Create an IndexerSDK from environment defaults plus ``option_fns``."""
    return IndexerSDK(*option_fns)
