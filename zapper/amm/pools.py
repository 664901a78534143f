"""Pool snapshot dataclasses.

A snapshot is the pool state captured for one quote request. Snapshots are
immutable and never shared between requests: pool state changes every block.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PoolSnapshot:
    """StableSwap(-NG) two-coin pool state.

    Attributes:
        address: Pool contract address
        xp: Pool balances (coin 0, coin 1), already in 18-decimal precision
        ann: Amplification in contract form, A * A_PRECISION * N_COINS
        base_fee: fee() of the pool, out of FEE_DENOMINATOR (1e10)
        offpeg_fee_multiplier: offpeg_fee_multiplier(), out of FEE_DENOMINATOR
        precisions: Multipliers that brought each raw balance to 18 decimals
    """

    address: str
    xp: tuple[int, int]
    ann: int
    base_fee: int
    offpeg_fee_multiplier: int
    precisions: tuple[int, int] = (1, 1)

    @property
    def is_empty(self) -> bool:
        return self.xp[0] + self.xp[1] == 0


@dataclass(frozen=True)
class CryptoPoolSnapshot:
    """CryptoSwap (twocrypto) pool state.

    Attributes:
        address: Pool contract address
        balances: Raw coin balances in native decimals
        a: A() of the pool, already in ANN form (A * N**N * A_MULTIPLIER)
        gamma: gamma(), 1e18 precision
        d: Stored invariant D()
        mid_fee: mid_fee(), out of 1e10
        out_fee: out_fee(), out of 1e10
        fee_gamma: fee_gamma(), 1e18 precision
        price_scale: price_scale() of coin 1 in terms of coin 0, 1e18 precision
        precisions: Multipliers bringing each coin to 18 decimals
    """

    address: str
    balances: tuple[int, int]
    a: int
    gamma: int
    d: int
    mid_fee: int
    out_fee: int
    fee_gamma: int
    price_scale: int
    precisions: tuple[int, int] = (1, 1)
