"""Event and response models exchanged with the indexer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RawEvent:
    """An on-chain event as pulled by the indexer and delivered through the queue."""

    recorded_at: datetime
    event_id: str
    from_address: str  # hex address of the emitting contract
    keys: tuple[str, ...] = ()
    data: tuple[str, ...] = ()


@dataclass(frozen=True)
class RegisterResponse:
    """Indexer acknowledgement of an app registration."""

    app_name: str
    hash: str
