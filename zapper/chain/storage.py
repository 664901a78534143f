"""Storage-slot addressing for ERC-20 balance and allowance mappings.

Used to build simulation state overrides that fund and approve a sender who
holds no real balance. The slot of mapping[key] is a keccak hash of the key
and the mapping's base slot, but compilers disagree on the order:

    Solidity: keccak256(key . slot)
    Vyper:    keccak256(slot . key)

Picking the wrong convention yields a valid-looking slot that the token
never reads, so the layout must be chosen per token contract.
"""

from __future__ import annotations

from enum import Enum

from eth_abi import encode
from web3 import Web3

from zapper.models.types import normalize_address
from zapper.uint256 import UINT256_MAX


class StorageLayout(str, Enum):
    SOLIDITY = "solidity"
    VYPER = "vyper"


def _slot_bytes(slot: int | bytes) -> bytes:
    if isinstance(slot, bytes):
        if len(slot) != 32:
            raise ValueError(f"Slot hash must be 32 bytes, got {len(slot)}")
        return slot
    return encode(["uint256"], [slot])


def _mapping_slot(key: str, slot: int | bytes, layout: StorageLayout) -> bytes:
    key_bytes = encode(["address"], [normalize_address(key, validate=True)])
    slot_bytes = _slot_bytes(slot)
    if layout == StorageLayout.VYPER:
        return bytes(Web3.keccak(slot_bytes + key_bytes))
    return bytes(Web3.keccak(key_bytes + slot_bytes))


def balance_slot(owner: str, slot: int, layout: StorageLayout = StorageLayout.SOLIDITY) -> str:
    """Storage key of balanceOf[owner] for a balances mapping at `slot`."""
    return "0x" + _mapping_slot(owner, slot, layout).hex()


def allowance_slot(
    owner: str, spender: str, slot: int, layout: StorageLayout = StorageLayout.SOLIDITY
) -> str:
    """Storage key of allowance[owner][spender] for an allowances mapping at `slot`."""
    inner = _mapping_slot(owner, slot, layout)
    return "0x" + _mapping_slot(spender, inner, layout).hex()


def storage_value(value: int) -> str:
    """32-byte hex word for a storage override."""
    if not 0 <= value <= UINT256_MAX:
        raise ValueError(f"Storage value out of uint256 range: {value}")
    return "0x" + value.to_bytes(32, "big").hex()


def build_funding_overrides(
    token: str,
    owner: str,
    spender: str,
    *,
    balance_slot_index: int = 0,
    allowance_slot_index: int = 1,
    layout: StorageLayout = StorageLayout.SOLIDITY,
    amount: int = UINT256_MAX,
) -> dict[str, dict[str, dict[str, str]]]:
    """State overrides giving `owner` a balance of `token` and an allowance to `spender`.

    Returns:
        {token: {"storage": {slot: value}}}, the shape simulation backends accept
    """
    value = storage_value(amount)
    return {
        normalize_address(token, validate=True): {
            "storage": {
                balance_slot(owner, balance_slot_index, layout): value,
                allowance_slot(owner, spender, allowance_slot_index, layout): value,
            }
        }
    }
