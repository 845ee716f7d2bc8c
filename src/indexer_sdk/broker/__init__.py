"""NATS JetStream integration components."""

from indexer_sdk.broker.jetstream import STREAM_NAME, JetStreamConsumer, Subscription

__all__ = ["STREAM_NAME", "JetStreamConsumer", "Subscription"]
