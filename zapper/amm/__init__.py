"""Curve pool math for off-chain quoting.

Pure functions over pool snapshots, replicating the pools' on-chain views:
- StableSwap-NG for pegged pairs
- CryptoSwap v2 for volatile pairs
"""

# Errors
from .errors import (
    AmmError,
    GetYDidNotConverge,
    InvariantDidNotConverge,
    UnsafeCryptoValue,
    ZeroBalanceError,
)

# Pool snapshots
from .pools import CryptoPoolSnapshot, PoolSnapshot

# CryptoSwap math
from .cryptoswap import (
    crypto_fee,
    crypto_find_peg_point,
    crypto_get_dy,
    geometric_mean,
    newton_d,
    newton_y,
)

# StableSwap math
from .stableswap import (
    A_PRECISION,
    FEE_DENOMINATOR,
    N_COINS,
    compute_ann,
    dynamic_fee,
    find_peg_point,
    get_d,
    get_dy,
    get_dy_offchain,
    get_y,
    snapshot_get_dy,
)

__all__ = [
    # Errors
    "AmmError",
    "GetYDidNotConverge",
    "InvariantDidNotConverge",
    "UnsafeCryptoValue",
    "ZeroBalanceError",
    # Snapshots
    "CryptoPoolSnapshot",
    "PoolSnapshot",
    # StableSwap
    "A_PRECISION",
    "FEE_DENOMINATOR",
    "N_COINS",
    "compute_ann",
    "dynamic_fee",
    "find_peg_point",
    "get_d",
    "get_dy",
    "get_dy_offchain",
    "get_y",
    "snapshot_get_dy",
    # CryptoSwap
    "crypto_fee",
    "crypto_find_peg_point",
    "crypto_get_dy",
    "geometric_mean",
    "newton_d",
    "newton_y",
]
