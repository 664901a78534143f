"""Shared address and amount constants for tests.

All addresses are lowercase for consistency with normalize_address().

Usage:
    from tests.helpers import WETH, CVXCRV
    # or
    from tests.helpers.constants import WETH, CVXCRV
"""

from zapper.registry import CVXCRV, YCVXCRV, YSCVXCRV

# =============================================================================
# Mainnet tokens
# =============================================================================

WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"  # Wrapped Ether (18 decimals)
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"  # USD Coin (6 decimals)
CRV = "0xd533a949740bb3306d119cc777fa900ba034cd52"  # Curve DAO Token (18 decimals)
CVX = "0x4e3fbd56cd56c3e72c1403e103b45db9da5b9d2b"  # Convex Token (18 decimals)

# =============================================================================
# Synthetic hybrid route (wrapper + pool + minter around CVX)
# =============================================================================

WRAPPER = "0x1111111111111111111111111111111111111111"
DERIVATIVE = "0x2222222222222222222222222222222222222222"
POOL = "0x3333333333333333333333333333333333333333"
MINTER = "0x4444444444444444444444444444444444444444"
DERIVATIVE_VAULT = "0x5555555555555555555555555555555555555555"
OTHER_VAULT = "0x6666666666666666666666666666666666666666"

# =============================================================================
# Accounts and endpoints
# =============================================================================

USER = "0x7777777777777777777777777777777777777777"
RPC_URL = "https://rpc.test"
AGGREGATOR_URL = "https://router.test"
SIMULATION_URL = "https://simulate.test/api"

# =============================================================================
# Amounts
# =============================================================================

ONE = 10**18

__all__ = [
    "CVXCRV",
    "YCVXCRV",
    "YSCVXCRV",
    "WETH",
    "USDC",
    "CRV",
    "CVX",
    "WRAPPER",
    "DERIVATIVE",
    "POOL",
    "MINTER",
    "DERIVATIVE_VAULT",
    "OTHER_VAULT",
    "USER",
    "RPC_URL",
    "AGGREGATOR_URL",
    "SIMULATION_URL",
    "ONE",
]
