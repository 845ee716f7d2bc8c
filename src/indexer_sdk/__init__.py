"""Client SDK for the event indexer: app registration and event delivery."""

from indexer_sdk.config import (
    build_options,
    default_options,
    load_configuration,
    load_options,
    with_api,
    with_api_key,
    with_http_timeout,
    with_token,
    with_url,
)
from indexer_sdk.errors import (
    EventDecodeError,
    IndexerSDKError,
    RegistrationError,
    SubscriptionError,
)
from indexer_sdk.interfaces.handler import ConsumerHandler, HandlerCancelFunc, Middleware
from indexer_sdk.middleware import apply_middleware, log_events
from indexer_sdk.models import Configuration, Contract, RawEvent, RegisterResponse, SDKOptions
from indexer_sdk.sdk import IndexerSDK, new_sdk

__all__ = [
    "IndexerSDK", "new_sdk",
    "build_options", "default_options", "load_configuration", "load_options",
    "with_api", "with_api_key", "with_http_timeout", "with_token", "with_url",
    "EventDecodeError", "IndexerSDKError", "RegistrationError", "SubscriptionError",
    "ConsumerHandler", "HandlerCancelFunc", "Middleware",
    "apply_middleware", "log_events",
    "Configuration", "Contract", "RawEvent", "RegisterResponse", "SDKOptions",
]
