"""Data models for the indexer SDK."""

from indexer_sdk.models.config import Configuration, Contract, SDKOptions
from indexer_sdk.models.events import RawEvent, RegisterResponse

__all__ = [
    "Configuration", "Contract", "SDKOptions",
    "RawEvent", "RegisterResponse",
]
