"""Read-only contract calls against a Starknet JSON-RPC node."""

from __future__ import annotations

import logging
from typing import Sequence

from starknet_py.hash.selector import get_selector_from_name
from starknet_py.net.client import Client
from starknet_py.net.client_models import Call

log = logging.getLogger(__name__)

# Starknet field modulus; every felt is strictly below it
FIELD_PRIME = 2**251 + 17 * 2**192 + 1


def felt_from_hex(value: str) -> int:
    """Parse a hex string (``0x`` prefix optional) into a field element.

    Raises ValueError if the string is not hex or the value does not fit
    in the field.
    """
    text = value.strip()
    digits = text[2:] if text[:2].lower() == "0x" else text
    if not digits:
        raise ValueError(f"invalid felt: {value!r}")
    try:
        felt = int(digits, 16)
    except ValueError:
        raise ValueError(f"invalid felt: {value!r}") from None
    if felt >= FIELD_PRIME:
        raise ValueError(f"felt out of range: {value!r}")
    return felt


async def call_contract(
    client: Client,
    address: str,
    function_name: str,
    calldata: Sequence[int] = (),
) -> list[int]:
    """Invoke ``function_name`` on the contract at ``address`` at the latest block.

    Errors from the RPC layer (transport failures, contract reverts) are
    raised unchanged.
    """
    call = Call(
        to_addr=felt_from_hex(address),
        selector=get_selector_from_name(function_name),
        calldata=list(calldata),
    )
    log.debug("Calling %s on %s", function_name, address)
    return await client.call_contract(call, block_number="latest")
