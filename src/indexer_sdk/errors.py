"""Exception types raised by the indexer SDK."""

from __future__ import annotations


class IndexerSDKError(Exception):
    """Base class for every error the SDK raises to its caller."""


class RegistrationError(IndexerSDKError):
    """The indexer registration round trip failed."""


class SubscriptionError(IndexerSDKError):
    """Connecting to the queue or binding the durable consumer failed."""


class EventDecodeError(IndexerSDKError):
    """A queue payload could not be decoded into a RawEvent."""
