"""Pytest configuration and fixtures."""

import pytest

from zapper.amm.pools import CryptoPoolSnapshot, PoolSnapshot
from zapper.amm.stableswap import compute_ann
from tests.helpers.constants import ONE, POOL


@pytest.fixture
def balanced_pool() -> PoolSnapshot:
    """Two-coin StableSwap pool with 1000 tokens each side, A=37."""
    return PoolSnapshot(
        address=POOL,
        xp=(1000 * ONE, 1000 * ONE),
        ann=compute_ann(37),
        base_fee=4000000,
        offpeg_fee_multiplier=20000000000,
    )


@pytest.fixture
def premium_pool() -> PoolSnapshot:
    """Pool short of coin 0, so coin 0 trades above 1:1 for small sizes."""
    return PoolSnapshot(
        address=POOL,
        xp=(50000 * ONE, 70000 * ONE),
        ann=compute_ann(37),
        base_fee=4000000,
        offpeg_fee_multiplier=20000000000,
    )


@pytest.fixture
def crypto_pool() -> CryptoPoolSnapshot:
    """Balanced CryptoSwap pool: 1000/1000 at price_scale 1."""
    return CryptoPoolSnapshot(
        address=POOL,
        balances=(1000 * ONE, 1000 * ONE),
        a=400000,
        gamma=145000000000000,
        d=2000 * ONE,
        mid_fee=26000000,
        out_fee=45000000,
        fee_gamma=230000000000000,
        price_scale=ONE,
    )
