"""Advisory output estimates for hybrid (wrap+swap / mint) routes.

The router cannot quote a path through a direct pool exchange or a
derivative mint, so the estimate is computed here from a fresh pool
snapshot. The result is for display and for the bundle's final-output
hint only: the executed bundle chains real amounts by reference.

Split logic:
    1. If the pool pays at least 1:1 for the whole amount, swap everything
    2. Otherwise find the peg point (largest input still paying >= 1:1)
    3. Verify the peg point with an on-chain get_dy; trim 1% if the pool
       pays less than the off-chain math predicted, 2% if it can't be checked
    4. Swap up to the peg point, mint the remainder 1:1
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace

import structlog

from zapper.amm.cryptoswap import crypto_find_peg_point, crypto_get_dy
from zapper.amm.pools import CryptoPoolSnapshot, PoolSnapshot
from zapper.amm.stableswap import find_peg_point, snapshot_get_dy
from zapper.bundles.composer import HybridRoute, HybridStrategy
from zapper.chain.errors import RpcError
from zapper.chain.reader import PoolSnapshotReader
from zapper.models.quote import HybridBreakdown

logger = structlog.get_logger()

# Peg point haircuts, in percent kept
_KEEP_WHEN_BELOW_PEG = 99
_KEEP_WHEN_UNVERIFIED = 98


@dataclass(frozen=True)
class SplitPlan:
    """Division of a base amount between the pool swap and the direct mint."""

    swap_amount: int
    mint_amount: int

    @property
    def strategy(self) -> HybridStrategy:
        if self.mint_amount == 0:
            return HybridStrategy.SWAP
        if self.swap_amount == 0:
            return HybridStrategy.MINT
        return HybridStrategy.SPLIT


@dataclass(frozen=True)
class HybridEstimate:
    """Estimated result of a hybrid route for a given base amount.

    Attributes:
        plan: Swap/mint division
        swap_output: Estimated pool output for plan.swap_amount
        output: Total derivative received (swap_output + mint_amount)
    """

    plan: SplitPlan
    swap_output: int
    output: int

    @property
    def bonus_percent(self) -> float:
        """Pool premium over a 1:1 mint on the swapped part."""
        if self.plan.swap_amount == 0:
            return 0.0
        return (self.swap_output - self.plan.swap_amount) / self.plan.swap_amount * 100

    def breakdown(self, route: HybridRoute) -> HybridBreakdown:
        return HybridBreakdown(
            swap_amount=self.plan.swap_amount,
            mint_amount=self.plan.mint_amount,
            swap_output=self.swap_output,
            bonus_percent=self.bonus_percent,
            swap_protocol=route.swap_protocol,
            mint_protocol=route.mint_protocol,
        )


def _oriented(snapshot: PoolSnapshot, i: int) -> PoolSnapshot:
    # StableSwap math is symmetric, so i=1 is the i=0 case on swapped balances
    if i == 0:
        return snapshot
    return replace(
        snapshot,
        xp=(snapshot.xp[1], snapshot.xp[0]),
        precisions=(snapshot.precisions[1], snapshot.precisions[0]),
    )


class QuoteEstimator:
    """Hybrid route estimates from live pool state."""

    def __init__(self, reader: PoolSnapshotReader) -> None:
        self._reader = reader

    async def _verify_peg_point(
        self, pool: str, i: int, j: int, peg_point: int, *, crypto: bool
    ) -> int:
        try:
            on_chain = await self._reader.get_dy(pool, i, j, peg_point, uint256_indices=crypto)
        except RpcError as err:
            logger.warning("peg_point_unverified", pool=pool, peg_point=peg_point, error=str(err))
            return peg_point * _KEEP_WHEN_UNVERIFIED // 100
        if on_chain < peg_point:
            logger.debug("peg_point_below_peg", pool=pool, peg_point=peg_point, on_chain=on_chain)
            return peg_point * _KEEP_WHEN_BELOW_PEG // 100
        return peg_point

    async def estimate_stable(
        self, route: HybridRoute, amount: int, *, precisions: tuple[int, int] = (1, 1)
    ) -> HybridEstimate:
        """Estimate a hybrid route whose pool is StableSwap-NG.

        Amounts are raw token units; precisions bring each coin to 18 decimals.

        Raises:
            ContractReadError / RpcTransportError: If the snapshot can't be read
            AmmError: If the pool math fails on the snapshot
        """
        snapshot = _oriented(
            await self._reader.stable_snapshot(route.pool, precisions=precisions), route.i
        )

        def get_dy(dx: int) -> int:
            return snapshot_get_dy(snapshot, 0, 1, dx)

        return await self._estimate(
            route, amount, get_dy, lambda: find_peg_point(snapshot), crypto=False
        )

    async def estimate_crypto(
        self, route: HybridRoute, amount: int, *, precisions: tuple[int, int] = (1, 1)
    ) -> HybridEstimate:
        """Estimate a hybrid route whose pool is CryptoSwap v2.

        Raises:
            ContractReadError / RpcTransportError: If the snapshot can't be read
            AmmError: If the pool math fails on the snapshot
        """
        snapshot: CryptoPoolSnapshot = await self._reader.crypto_snapshot(
            route.pool, precisions=precisions
        )

        def get_dy(dx: int) -> int:
            return crypto_get_dy(snapshot, route.i, route.j, dx)

        return await self._estimate(
            route,
            amount,
            get_dy,
            lambda: crypto_find_peg_point(snapshot, route.i, route.j),
            crypto=True,
        )

    async def _estimate(
        self,
        route: HybridRoute,
        amount: int,
        get_dy: Callable[[int], int],
        peg_point: Callable[[], int],
        *,
        crypto: bool,
    ) -> HybridEstimate:
        if amount == 0:
            return HybridEstimate(plan=SplitPlan(0, 0), swap_output=0, output=0)

        # Minting needs a minter; without one the whole amount is swapped
        dy_total = get_dy(amount)
        if dy_total >= amount or route.minter is None:
            return HybridEstimate(plan=SplitPlan(amount, 0), swap_output=dy_total, output=dy_total)

        point = peg_point()
        if point == 0:
            return HybridEstimate(plan=SplitPlan(0, amount), swap_output=0, output=amount)

        point = await self._verify_peg_point(route.pool, route.i, route.j, point, crypto=crypto)
        swap_amount = min(point, amount)
        mint_amount = amount - swap_amount
        swap_output = get_dy(swap_amount) if swap_amount else 0

        logger.debug(
            "hybrid_split_estimated",
            pool=route.pool,
            amount=amount,
            swap_amount=swap_amount,
            mint_amount=mint_amount,
        )
        return HybridEstimate(
            plan=SplitPlan(swap_amount, mint_amount),
            swap_output=swap_output,
            output=swap_output + mint_amount,
        )
