"""Indexer HTTP API components."""

from indexer_sdk.api.registration import RegistrationClient

__all__ = ["RegistrationClient"]
