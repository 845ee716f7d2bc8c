"""Starknet integration components."""

from indexer_sdk.chain.calls import FIELD_PRIME, call_contract, felt_from_hex

__all__ = ["FIELD_PRIME", "call_contract", "felt_from_hex"]
