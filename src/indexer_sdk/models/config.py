"""Configuration models: indexer registration config and SDK options."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any

from starknet_py.net.client import Client

from indexer_sdk.chain.calls import call_contract, felt_from_hex

log = logging.getLogger(__name__)


@dataclass
class Contract:
    """A contract tracked by the indexer on behalf of an app."""

    name: str
    address: str  # hex felt
    events: dict[str, str] = field(default_factory=dict)  # event name -> subject

    def felt_address(self) -> int:
        """Canonical numeric form of ``address``."""
        return felt_from_hex(self.address)

    async def call(self, client: Client, function_name: str, *calldata: int) -> list[int]:
        """Execute a read-only ``call`` on this contract at the latest block."""
        return await call_contract(client, self.address, function_name, calldata)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "events": dict(self.events),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Contract:
        return cls(
            name=str(raw.get("name", "")),
            address=str(raw.get("address", "")),
            events={str(k): str(v) for k, v in (raw.get("events") or {}).items()},
        )


@dataclass
class Configuration:
    """Indexer registration document for one app."""

    app_name: str
    contracts: list[Contract] = field(default_factory=list)
    start_block: int = 0

    def __post_init__(self) -> None:
        if self.start_block < 0:
            raise ValueError(f"start_block must be >= 0, got {self.start_block}")

    def filter_by_name(self, pattern: str) -> Configuration:
        """Return a copy keeping only contracts whose name matches ``pattern``.

        Matching is an unanchored regex search. A pattern that fails to
        compile matches nothing.
        """
        try:
            regex = re.compile(pattern)
        except re.error as exc:
            log.debug("Invalid contract name pattern %r: %s", pattern, exc)
            return replace(self, contracts=[])
        return replace(
            self,
            contracts=[c for c in self.contracts if regex.search(c.name)],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "app_name": self.app_name,
            "contracts": [c.to_dict() for c in self.contracts],
            "start_block": self.start_block,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Configuration:
        return cls(
            app_name=str(raw.get("app_name", "")),
            contracts=[Contract.from_dict(c) for c in raw.get("contracts") or []],
            start_block=int(raw.get("start_block") or 0),
        )


@dataclass(frozen=True)
class SDKOptions:
    """Connection options held by an SDK instance."""

    token: str = ""  # NATS auth token
    url: str = ""  # NATS server URL
    api: str = ""  # indexer HTTP API base URL
    api_key: str = ""

    # Client tuning
    http_timeout: float = 30.0  # seconds
    fetch_batch: int = 10
    fetch_timeout: float = 5.0  # seconds per pull request
    error_backoff: float = 5.0  # seconds after a failed pull
