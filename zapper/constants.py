"""Protocol constants for the zap engine.

Centralizes well-known addresses and protocol parameters.
"""

from zapper.models.types import is_valid_address
from zapper.uint256 import UINT256_MAX


def _validate_address(name: str, address: str) -> str:
    """Validate and return a lowercase address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address.lower()


# Mainnet only
CHAIN_ID = 1

# Aggregator router contracts. Approvals for a bundle go to ENSO_ROUTER;
# tokens minted mid-bundle must be sent to ENSO_ROUTER_EXECUTOR so later
# actions can spend them.
ENSO_ROUTER = _validate_address("ENSO_ROUTER", "0x80EbA3855878739F4710233A8a19d89Bdd2ffB8E")
ENSO_ROUTER_EXECUTOR = _validate_address(
    "ENSO_ROUTER_EXECUTOR", "0xF75584eF6673aD213a685a1B58Cc0330B8eA22Cf"
)

# Unbounded approval amount
MAX_ALLOWANCE = UINT256_MAX

# Basis point denominator (10000 bps = 100%)
BPS_DENOMINATOR = 10_000

# Slippage bounds accepted from callers, in bps
MIN_SLIPPAGE_BPS = 10
MAX_SLIPPAGE_BPS = 5_000
DEFAULT_SLIPPAGE_BPS = 100

# Call signatures rendered into "enso"/"call" actions
MINT_ABI = "function mint(address to, uint256 amount)"
LOCKING_MINT_ABI = "function mint(address to, uint256 amount, bool isLock) returns (uint256)"
EXCHANGE_ABI = (
    "function exchange(int128 i, int128 j, uint256 dx, uint256 min_dy) returns (uint256)"
)
