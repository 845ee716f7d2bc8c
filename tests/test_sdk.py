"""SDK facade: consumer registration wiring, connect/bind failures, teardown."""

from __future__ import annotations

import pytest
from nats.errors import ConnectionClosedError
from nats.js.api import AckPolicy

from indexer_sdk.broker.jetstream import STREAM_NAME, JetStreamConsumer
from indexer_sdk.errors import SubscriptionError
from indexer_sdk.models.config import SDKOptions
from indexer_sdk.sdk import IndexerSDK

from tests.factories import make_payload
from tests.mocks import MockJetStream, MockMsg, MockNats, RecordingHandler, wait_for

OPTIONS = SDKOptions(
    token="test_token",
    url="nats://127.0.0.1:4222",
    api="http://indexer.test",
    fetch_timeout=0.01,
    error_backoff=0.01,
)


@pytest.fixture
def connect_calls(monkeypatch, mock_nc):
    """Route nats.connect to the mock connection and record its arguments."""
    calls: list[dict] = []

    async def fake_connect(**kwargs):
        calls.append(kwargs)
        return mock_nc

    monkeypatch.setattr("indexer_sdk.broker.jetstream.nats.connect", fake_connect)
    return calls


# ── Binding ───────────────────────────────────────────────────────


async def test_register_binds_durable_consumer(connect_calls, mock_js, mock_nc, handler):
    sdk = IndexerSDK(options=OPTIONS)

    cancel = await sdk.register_handler("test_app", "project:uri", handler)

    assert connect_calls[0]["servers"] == "nats://127.0.0.1:4222"
    assert connect_calls[0]["token"] == "test_token"
    config = mock_js.consumers[f"{STREAM_NAME}/test_app"]
    assert config.name == "test_app"
    assert config.filter_subject == "project:uri"
    assert config.ack_policy == AckPolicy.EXPLICIT

    await cancel()
    assert mock_js.delete_calls == [(STREAM_NAME, "test_app")]
    assert mock_nc.is_closed


async def test_register_delivers_through_middleware(connect_calls, mock_js, handler):
    trace: list[str] = []

    def tracing(inner):
        async def wrapped(subject, sequence, event):
            trace.append(subject)
            await inner(subject, sequence, event)
        return wrapped

    msg = MockMsg(make_payload(), subject="yielder:deposit", stream_seq=5)
    mock_js.psub.batches.append([msg])
    sdk = IndexerSDK(options=OPTIONS)

    cancel = await sdk.register_handler("test_app", "yielder:deposit", handler, [tracing])
    await wait_for(lambda: msg.ack_count == 1)
    await cancel()

    assert trace == ["yielder:deposit"]
    assert handler.calls[0][:2] == ("yielder:deposit", 5)
    assert msg.ack_count == 1


async def test_connect_failure_is_fatal(monkeypatch, handler):
    async def failing_connect(**kwargs):
        raise OSError("connection refused")

    monkeypatch.setattr("indexer_sdk.broker.jetstream.nats.connect", failing_connect)
    sdk = IndexerSDK(options=OPTIONS)

    with pytest.raises(SubscriptionError, match="failed to connect"):
        await sdk.register_handler("test_app", "project:uri", handler)


async def test_bind_failure_closes_connection(monkeypatch, handler):
    nc = MockNats(MockJetStream(add_error=RuntimeError("stream not found")))

    async def fake_connect(**kwargs):
        return nc

    monkeypatch.setattr("indexer_sdk.broker.jetstream.nats.connect", fake_connect)
    sdk = IndexerSDK(options=OPTIONS)

    with pytest.raises(SubscriptionError, match="failed to bind consumer test_app"):
        await sdk.register_handler("test_app", "project:uri", handler)
    assert nc.is_closed
    assert sdk._subscriptions == []


async def test_consumer_register_returns_started_subscription(connect_calls, handler):
    sub = await JetStreamConsumer(OPTIONS).register("test_app", "project:uri", handler)

    assert sub.name == "test_app"
    assert sub.running
    await sub.cancel()
    assert not sub.running


async def test_empty_token_is_not_sent(connect_calls, handler):
    sdk = IndexerSDK(options=SDKOptions(url="nats://127.0.0.1:4222", fetch_timeout=0.01))

    cancel = await sdk.register_handler("test_app", "project:uri", handler)
    await cancel()

    assert connect_calls[0]["token"] is None


# ── Teardown ──────────────────────────────────────────────────────


async def test_close_cancels_live_subscriptions(connect_calls, mock_js, mock_nc):
    async with IndexerSDK(options=OPTIONS) as sdk:
        await sdk.register_handler("app_a", "project:uri", RecordingHandler())

    assert mock_js.delete_calls == [(STREAM_NAME, "app_a")]
    assert mock_nc.is_closed


async def test_close_skips_cancelled_subscriptions(connect_calls, mock_js):
    sdk = IndexerSDK(options=OPTIONS)
    cancel = await sdk.register_handler("app_a", "project:uri", RecordingHandler())
    await cancel()

    await sdk.close()

    assert mock_js.delete_calls == [(STREAM_NAME, "app_a")]


async def test_cancel_forgets_subscription(connect_calls, mock_js):
    sdk = IndexerSDK(options=OPTIONS)

    for _ in range(5):
        cancel = await sdk.register_handler("app_a", "project:uri", RecordingHandler())
        assert len(sdk._subscriptions) == 1
        await cancel()

    assert sdk._subscriptions == []
    assert len(mock_js.delete_calls) == 5


async def test_register_drops_closed_subscriptions(connect_calls, mock_js):
    mock_js.psub.batches.append(ConnectionClosedError())
    sdk = IndexerSDK(options=OPTIONS)

    await sdk.register_handler("app_a", "project:uri", RecordingHandler())
    await wait_for(lambda: not sdk._subscriptions[0].running)
    cancel = await sdk.register_handler("app_b", "project:uri", RecordingHandler())

    assert [s.name for s in sdk._subscriptions] == ["app_b"]
    await cancel()
