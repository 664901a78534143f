"""Pool and vault state reads through web3 contract calls.

The calls for one snapshot run concurrently. Fields the math cannot do
without (balances, A) raise ContractReadError when a call reverts: a zero
stand-in would silently produce a wrong quote.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiohttp
import structlog
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError, Web3Exception

from zapper.amm.pools import CryptoPoolSnapshot, PoolSnapshot
from zapper.amm.stableswap import FEE_DENOMINATOR, compute_ann

from .abis import CRYPTO_POOL_ABI, ERC4626_ABI, STABLE_POOL_ABI
from .errors import ContractReadError, RpcError, RpcTransportError

logger = structlog.get_logger()


def create_web3(url: str, *, timeout: float = 10.0) -> AsyncWeb3:
    """Async web3 connection for read-only eth_calls.

    Reads need none of the default middleware (signing, ENS, gas), so the
    stack is left empty.
    """
    provider = AsyncHTTPProvider(
        url, request_kwargs={"timeout": aiohttp.ClientTimeout(total=timeout)}
    )
    return AsyncWeb3(provider, middleware=[])


@asynccontextmanager
async def _reading(address: str, field: str) -> AsyncIterator[None]:
    try:
        yield
    except (ContractLogicError, BadFunctionCallOutput) as err:
        raise ContractReadError(address, field, str(err)) from err
    except (aiohttp.ClientError, asyncio.TimeoutError) as err:
        raise RpcTransportError(f"RPC request for {field} on {address} failed: {err}") from err
    except Web3Exception as err:
        raise RpcError(f"RPC error reading {field} from {address}: {err}") from err


async def _read(address: str, field: str, function: Any) -> int:
    async with _reading(address, field):
        return int(await function.call())


async def _read_all(address: str, calls: list[tuple[str, Any]]) -> list[int]:
    return list(await asyncio.gather(*(_read(address, field, fn) for field, fn in calls)))


class PoolSnapshotReader:
    """Reads pool snapshots and vault previews through an AsyncWeb3 connection."""

    def __init__(self, w3: AsyncWeb3) -> None:
        self._w3 = w3

    def _contract(self, address: str, abi: list[dict[str, Any]]) -> Any:
        return self._w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    async def _offpeg_multiplier(self, pool: str, contract: Any) -> int:
        try:
            return await _read(
                pool, "offpeg_fee_multiplier", contract.functions.offpeg_fee_multiplier()
            )
        except ContractReadError:
            # Pools without an off-peg multiplier charge the flat fee
            return FEE_DENOMINATOR

    async def stable_snapshot(
        self,
        pool: str,
        *,
        a_precise: bool = False,
        precisions: tuple[int, int] = (1, 1),
    ) -> PoolSnapshot:
        """Capture a StableSwap-NG pool.

        Args:
            pool: Pool address
            a_precise: Read A_precise() instead of A()
            precisions: Multipliers bringing each balance to 18 decimals

        Raises:
            ContractReadError: If a balance, A or fee can't be read
            RpcTransportError: If the RPC endpoint fails
        """
        contract = self._contract(pool, STABLE_POOL_ABI)
        functions = contract.functions
        amp_field = "A_precise" if a_precise else "A"
        (balance0, balance1, a, fee), offpeg = await asyncio.gather(
            _read_all(
                pool,
                [
                    ("balances(0)", functions.balances(0)),
                    ("balances(1)", functions.balances(1)),
                    (amp_field, getattr(functions, amp_field)()),
                    ("fee", functions.fee()),
                ],
            ),
            self._offpeg_multiplier(pool, contract),
        )

        snapshot = PoolSnapshot(
            address=pool,
            xp=(balance0 * precisions[0], balance1 * precisions[1]),
            ann=compute_ann(a, a_precise),
            base_fee=fee,
            offpeg_fee_multiplier=offpeg,
            precisions=precisions,
        )
        logger.debug("stable_snapshot_read", pool=pool, xp=snapshot.xp, ann=snapshot.ann)
        return snapshot

    async def crypto_snapshot(
        self, pool: str, *, precisions: tuple[int, int] = (1, 1)
    ) -> CryptoPoolSnapshot:
        """Capture a CryptoSwap v2 pool.

        Raises:
            ContractReadError: If any parameter can't be read
            RpcTransportError: If the RPC endpoint fails
        """
        functions = self._contract(pool, CRYPTO_POOL_ABI).functions
        values = await _read_all(
            pool,
            [
                ("A", functions.A()),
                ("gamma", functions.gamma()),
                ("D", functions.D()),
                ("mid_fee", functions.mid_fee()),
                ("out_fee", functions.out_fee()),
                ("fee_gamma", functions.fee_gamma()),
                ("price_scale", functions.price_scale()),
                ("balances(0)", functions.balances(0)),
                ("balances(1)", functions.balances(1)),
            ],
        )
        a, gamma, d, mid_fee, out_fee, fee_gamma, price_scale, balance0, balance1 = values

        return CryptoPoolSnapshot(
            address=pool,
            balances=(balance0, balance1),
            a=a,
            gamma=gamma,
            d=d,
            mid_fee=mid_fee,
            out_fee=out_fee,
            fee_gamma=fee_gamma,
            price_scale=price_scale,
            precisions=precisions,
        )

    async def get_dy(
        self, pool: str, i: int, j: int, dx: int, *, uint256_indices: bool = False
    ) -> int:
        """On-chain get_dy, for verifying an off-chain estimate.

        StableSwap pools take int128 indices, CryptoSwap pools uint256.

        Raises:
            ContractReadError: If the call reverts or returns nothing
        """
        abi = CRYPTO_POOL_ABI if uint256_indices else STABLE_POOL_ABI
        contract = self._contract(pool, abi)
        return await _read(pool, "get_dy", contract.functions.get_dy(i, j, dx))

    async def preview_deposit(self, vault: str, assets: int) -> int:
        """Shares minted for depositing `assets` into an ERC-4626 vault."""
        contract = self._contract(vault, ERC4626_ABI)
        return await _read(vault, "previewDeposit", contract.functions.previewDeposit(assets))
