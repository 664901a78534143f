"""Test helpers module for shared test utilities.

- constants: Token addresses, endpoints and common amounts
- factories: Hybrid routes, canned router payloads and a fake chain provider
"""

from tests.helpers.constants import (
    AGGREGATOR_URL,
    CRV,
    CVX,
    CVXCRV,
    DERIVATIVE,
    DERIVATIVE_VAULT,
    MINTER,
    ONE,
    OTHER_VAULT,
    POOL,
    RPC_URL,
    SIMULATION_URL,
    USDC,
    USER,
    WETH,
    WRAPPER,
    YCVXCRV,
    YSCVXCRV,
)
from tests.helpers.factories import (
    FakeChainProvider,
    bundle_payload,
    fake_web3,
    make_hybrid_route,
    mock_client,
    route_payload,
    selector,
    word,
)

__all__ = [
    # Constants
    "AGGREGATOR_URL",
    "CRV",
    "CVX",
    "CVXCRV",
    "DERIVATIVE",
    "DERIVATIVE_VAULT",
    "MINTER",
    "ONE",
    "OTHER_VAULT",
    "POOL",
    "RPC_URL",
    "SIMULATION_URL",
    "USDC",
    "USER",
    "WETH",
    "WRAPPER",
    "YCVXCRV",
    "YSCVXCRV",
    # Factories
    "FakeChainProvider",
    "bundle_payload",
    "fake_web3",
    "make_hybrid_route",
    "mock_client",
    "route_payload",
    "selector",
    "word",
]
