"""JetStream consumer - binds a durable consumer and delivers decoded events.

Each registration owns its NATS connection. Messages are pulled in batches
by a single asyncio task and handed to the handler one at a time, so the
handler sees the stream order of its filtered subject.

Per-message failures (undecodable payload, handler error) are logged and
the message is left unacknowledged; JetStream redelivers it according to
the consumer's own ack wait and max deliver settings. Failures while
acknowledging or reading metadata are logged and otherwise ignored.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

import nats
from nats.aio.client import Client as NATSClient
from nats.errors import ConnectionClosedError
from nats.errors import TimeoutError as NATSTimeoutError
from nats.js import JetStreamContext
from nats.js.api import AckPolicy, ConsumerConfig
from nats.js.errors import NotFoundError

from indexer_sdk.codec import decode_raw_event
from indexer_sdk.errors import EventDecodeError, SubscriptionError
from indexer_sdk.interfaces.handler import ConsumerHandler, Middleware
from indexer_sdk.middleware import apply_middleware, invoke_handler
from indexer_sdk.models.config import SDKOptions

log = logging.getLogger(__name__)

STREAM_NAME = "EVENTS"


def _stream_sequence(msg: Any) -> int:
    """Stream sequence from JetStream metadata, 0 if it cannot be read."""
    try:
        return msg.metadata.sequence.stream
    except Exception as exc:
        log.debug("No metadata on message from %s: %s", msg.subject, exc)
        return 0


class Subscription:
    """A bound durable consumer plus the task delivering its messages."""

    def __init__(
        self,
        nc: NATSClient,
        js: JetStreamContext,
        psub: JetStreamContext.PullSubscription,
        name: str,
        handler: ConsumerHandler,
        fetch_batch: int = 10,
        fetch_timeout: float = 5.0,
        error_backoff: float = 5.0,
    ) -> None:
        self._nc = nc
        self._js = js
        self._psub = psub
        self._name = name
        self._handler = handler
        self._fetch_batch = fetch_batch
        self._fetch_timeout = fetch_timeout
        self._error_backoff = error_backoff
        self._task: asyncio.Task | None = None
        self._stopped = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the delivery task. A stopped subscription stays stopped."""
        if self._stopped or self.running:
            return
        self._task = asyncio.create_task(
            self._run(), name=f"indexer-consumer-{self._name}",
        )

    async def _run(self) -> None:
        while not self._stopped:
            try:
                msgs = await self._psub.fetch(
                    self._fetch_batch, timeout=self._fetch_timeout,
                )
            except NATSTimeoutError:
                continue
            except ConnectionClosedError:
                log.info("Connection closed, consumer %s stops delivering", self._name)
                return
            except Exception as exc:
                log.error("Fetch failed on consumer %s: %s", self._name, exc)
                await asyncio.sleep(self._error_backoff)
                continue

            for msg in msgs:
                # The handler may have cancelled this subscription
                if self._stopped:
                    return
                await self.deliver(msg)

    async def deliver(self, msg: Any) -> bool:
        """Decode one message, hand it to the handler, ack on success.

        Returns True when the message was handled. The ack is skipped when
        the handler stopped the subscription, since the connection is gone.
        """
        subject = msg.subject
        sequence = _stream_sequence(msg)
        log.debug("Received message on %s (sequence %d)", subject, sequence)

        try:
            event = decode_raw_event(msg.data)
        except EventDecodeError as exc:
            log.error("Failed to decode raw event on %s (sequence %d): %s", subject, sequence, exc)
            return False

        try:
            await invoke_handler(self._handler, subject, sequence, event)
        except Exception as exc:
            log.error(
                "Handler failed for %s on %s (sequence %d): %s",
                event.event_id, subject, sequence, exc,
            )
            return False

        if self._stopped:
            log.debug("Consumer %s stopped, not acking sequence %d", self._name, sequence)
            return True

        try:
            await msg.ack()
        except Exception as exc:
            log.warning("Ack failed for %s (sequence %d): %s", subject, sequence, exc)
        return True

    async def stop(self) -> None:
        """Stop delivering and close the connection."""
        self._stopped = True
        task = self._task
        # A handler stopping its own subscription runs inside the task;
        # the flag ends the loop once the handler returns
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if not self._nc.is_closed:
            await self._nc.close()

    async def cancel(self) -> None:
        """Delete the durable consumer, then stop delivering.

        A consumer that no longer exists counts as deleted. Other delete
        errors are logged; this never raises.
        """
        try:
            await self._js.delete_consumer(STREAM_NAME, self._name)
            log.info("Deleted consumer %s", self._name)
        except NotFoundError:
            log.debug("Consumer %s already gone", self._name)
        except Exception as exc:
            log.error("Failed to delete consumer %s: %s", self._name, exc)
        await self.stop()


class JetStreamConsumer:
    """Registers handlers on durable consumers of the EVENTS stream."""

    def __init__(self, options: SDKOptions) -> None:
        self._url = options.url
        self._token = options.token
        self._fetch_batch = options.fetch_batch
        self._fetch_timeout = options.fetch_timeout
        self._error_backoff = options.error_backoff

    async def _on_error(self, exc: Exception) -> None:
        log.warning("NATS error: %s", exc)

    async def _connect(self) -> NATSClient:
        try:
            return await nats.connect(
                servers=self._url,
                token=self._token or None,
                error_cb=self._on_error,
            )
        except Exception as exc:
            log.error("Failed to connect to nats at %s: %s", self._url, exc)
            raise SubscriptionError(f"failed to connect to nats: {exc}") from exc

    async def bind(self, name: str, subject: str, handler: ConsumerHandler) -> Subscription:
        """Connect, create or update the consumer, and return an unstarted Subscription."""
        log.debug("Registering handler %s on %s", name, subject)
        nc = await self._connect()

        try:
            js = nc.jetstream()
            # JetStream create is create-or-update for an existing durable name
            await js.add_consumer(
                STREAM_NAME,
                config=ConsumerConfig(
                    name=name,
                    durable_name=name,
                    filter_subject=subject,
                    ack_policy=AckPolicy.EXPLICIT,
                ),
            )
            psub = await js.pull_subscribe_bind(durable=name, stream=STREAM_NAME)
        except Exception as exc:
            log.error("Failed to create or update consumer %s: %s", name, exc)
            await nc.close()
            raise SubscriptionError(f"failed to bind consumer {name}: {exc}") from exc

        log.info("Consumer %s bound to %s on stream %s", name, subject, STREAM_NAME)
        return Subscription(
            nc, js, psub, name, handler,
            fetch_batch=self._fetch_batch,
            fetch_timeout=self._fetch_timeout,
            error_backoff=self._error_backoff,
        )

    async def register(
        self,
        name: str,
        subject: str,
        handler: ConsumerHandler,
        middlewares: Sequence[Middleware] = (),
    ) -> Subscription:
        """Bind consumer ``name`` on ``subject`` and start delivering to ``handler``."""
        sub = await self.bind(name, subject, apply_middleware(handler, *middlewares))
        sub.start()
        return sub
