"""Factory functions for test objects and canned network payloads.

Usage:
    from tests.helpers import make_hybrid_route, bundle_payload

    route = make_hybrid_route(minter=None)
"""

from collections.abc import Callable
from typing import Any

import httpx
from web3 import AsyncWeb3, Web3
from web3.providers.async_base import AsyncBaseProvider

from zapper.bundles.composer import HybridRoute
from tests.helpers.constants import CVX, DERIVATIVE, MINTER, POOL, WRAPPER

ROUTER_TX = {
    "to": "0x80eba3855878739f4710233a8a19d89bdd2ffb8e",
    "data": "0xdeadbeef",
    "value": "0",
}


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by `handler`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def make_hybrid_route(
    base_token: str = CVX,
    minter: str | None = MINTER,
    i: int = 0,
    j: int = 1,
) -> HybridRoute:
    """Hybrid route CVX -> wrapper -> pool -> derivative, with an optional minter."""
    return HybridRoute(
        base_token=base_token,
        wrapper=WRAPPER,
        derivative=DERIVATIVE,
        pool=POOL,
        i=i,
        j=j,
        minter=minter,
    )


def word(value: int) -> str:
    """ABI-encoded uint256 return value."""
    return "0x" + value.to_bytes(32, "big").hex()


def bundle_payload(amounts_out: dict[str, int], gas: int | str | None = 450000) -> dict[str, Any]:
    """Router bundle response body."""
    return {
        "tx": dict(ROUTER_TX),
        "gas": None if gas is None else str(gas),
        "amountsOut": {token: str(amount) for token, amount in amounts_out.items()},
    }


def route_payload(amount_out: int, gas: int = 250000) -> dict[str, Any]:
    """Router single-route response body."""
    return {"tx": dict(ROUTER_TX), "gas": str(gas), "amountOut": str(amount_out)}



def selector(signature: str) -> str:
    """4-byte function selector as 0x-prefixed hex."""
    return "0x" + bytes(Web3.keccak(text=signature)[:4]).hex()


class FakeChainProvider(AsyncBaseProvider):
    """Answers eth_call from a table of (contract, function signature) -> uint256.

    Calls missing from the table revert. Every calldata seen is kept in
    `calls` for assertions.

    Usage:
        provider = FakeChainProvider({(POOL, "A()"): 200})
        reader = PoolSnapshotReader(AsyncWeb3(provider, middleware=[]))
    """

    def __init__(
        self, values: dict[tuple[str, str], int], *, error: Exception | None = None
    ) -> None:
        super().__init__()
        self._values = {
            (address.lower(), selector(signature)): value
            for (address, signature), value in values.items()
        }
        self._error = error
        self.calls: list[str] = []

    async def make_request(self, method: Any, params: Any) -> Any:
        if self._error is not None:
            raise self._error
        assert method == "eth_call"
        transaction = params[0]
        data = transaction["data"]
        self.calls.append(data)
        value = self._values.get((transaction["to"].lower(), data[:10]))
        if value is None:
            error = {"code": 3, "message": "execution reverted"}
            return {"jsonrpc": "2.0", "id": 1, "error": error}
        return {"jsonrpc": "2.0", "id": 1, "result": word(value)}

    async def is_connected(self, show_traceback: bool = False) -> bool:
        return True


def fake_web3(
    values: dict[tuple[str, str], int], *, error: Exception | None = None
) -> tuple[AsyncWeb3, FakeChainProvider]:
    provider = FakeChainProvider(values, error=error)
    return AsyncWeb3(provider, middleware=[]), provider
