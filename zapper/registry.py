"""Static registry of supported vaults.

Which vaults the engine zaps into is a deployment decision, not runtime
state, so the registry is a module-level mapping built once at import time.
"""

from __future__ import annotations

from dataclasses import dataclass

from zapper.models.types import normalize_address


@dataclass(frozen=True)
class Vault:
    """A supported ERC-4626 vault.

    Attributes:
        id: Lowercase registry key
        symbol: Share token symbol
        address: Vault contract (lowercase)
        asset_address: Underlying asset (lowercase)
        asset_symbol: Underlying asset symbol
        decimals: Share decimals
        asset_decimals: Underlying asset decimals
    """

    id: str
    symbol: str
    address: str
    asset_address: str
    asset_symbol: str
    decimals: int = 18
    asset_decimals: int = 18


# Token addresses (lowercase)
CVXCRV = "0x62b9c7356a2dc64a1969e19c23e4f579f9810aa7"

# Vault addresses (lowercase)
YCVXCRV = "0x95f19b19aff698169a1a0bbc28a2e47b14cb9a86"
YSCVXCRV = "0xca960e6df1150100586c51382f619efcccf72706"

VAULTS: dict[str, Vault] = {
    "ycvxcrv": Vault(
        id="ycvxcrv",
        symbol="ycvxCRV",
        address=YCVXCRV,
        asset_address=CVXCRV,
        asset_symbol="cvxCRV",
    ),
    "yscvxcrv": Vault(
        id="yscvxcrv",
        symbol="yscvxCRV",
        address=YSCVXCRV,
        asset_address=CVXCRV,
        asset_symbol="cvxCRV",
    ),
}


def get_vault_by_address(address: str) -> Vault | None:
    """Look up a vault by contract address, case-insensitively."""
    normalized = normalize_address(address)
    for vault in VAULTS.values():
        if vault.address == normalized:
            return vault
    return None


def underlying_of(vault_address: str, default: str = CVXCRV) -> str:
    """Underlying asset of a registered vault, or default for unknown vaults."""
    vault = get_vault_by_address(vault_address)
    return vault.asset_address if vault is not None else normalize_address(default)
