"""Protocol interfaces for indexer SDK components."""

from indexer_sdk.interfaces.handler import ConsumerHandler, HandlerCancelFunc, Middleware
from indexer_sdk.interfaces.registrar import Registrar

__all__ = [
    "ConsumerHandler", "HandlerCancelFunc", "Middleware",
    "Registrar",
]
