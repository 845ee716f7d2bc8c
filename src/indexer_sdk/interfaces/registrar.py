"""Registrar protocol - registers an app configuration with the indexer."""

from __future__ import annotations

from typing import Protocol

from indexer_sdk.models.config import Configuration
from indexer_sdk.models.events import RegisterResponse


class Registrar(Protocol):
    """Submits an app configuration to the indexer API."""

    async def configure(self, config: Configuration) -> RegisterResponse:
        """Register ``config`` and return the indexer's handle for it."""
        ...
