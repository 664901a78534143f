"""Configuration for the zap engine.

Settings come from environment variables with defaults; tests build the
dataclasses directly with the values they need.
"""

import os
from dataclasses import dataclass, field

from zapper.constants import CHAIN_ID, DEFAULT_SLIPPAGE_BPS

DEFAULT_RPC_URL = "https://eth.llamarpc.com"
DEFAULT_AGGREGATOR_URL = "https://api.enso.finance"
DEFAULT_SIMULATION_URL = "https://api.tenderly.co/api/v1/account/me/project/zapper/simulate"


@dataclass(frozen=True)
class ComposerConfig:
    """Behaviour of the bundle composer.

    Attributes:
        extensive_chaining_threshold: Number of dynamically-amounted actions at
            which the router's own quote pass is skipped and a precomputed
            final-output estimate is required
        upstream_buffer_bps: Extra haircut applied to estimates that feed a
            literal amount downstream of an aggregator route
    """

    extensive_chaining_threshold: int = 3
    upstream_buffer_bps: int = 100


@dataclass(frozen=True)
class ZapperConfig:
    """Network endpoints and request defaults.

    Attributes:
        rpc_url: JSON-RPC endpoint for contract reads
        aggregator_url: Base URL of the routing aggregator API
        aggregator_api_key: Bearer token for the aggregator, if any
        chain_id: Chain the engine quotes on (mainnet only)
        default_slippage_bps: Slippage used when a request omits one
        http_timeout: Timeout in seconds for every outbound request
        price_cache_ttl: Seconds a fetched USD price stays valid
        simulation_url: Transaction simulation endpoint
        simulation_access_key: Access key for the simulation backend
    """

    rpc_url: str = DEFAULT_RPC_URL
    aggregator_url: str = DEFAULT_AGGREGATOR_URL
    aggregator_api_key: str | None = None
    chain_id: int = CHAIN_ID
    default_slippage_bps: int = DEFAULT_SLIPPAGE_BPS
    http_timeout: float = 10.0
    price_cache_ttl: float = 60.0
    simulation_url: str = DEFAULT_SIMULATION_URL
    simulation_access_key: str | None = None
    composer: ComposerConfig = field(default_factory=ComposerConfig)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


def load_config() -> ZapperConfig:
    """Build a ZapperConfig from ZAPPER_* environment variables.

    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    return ZapperConfig(
        rpc_url=os.environ.get("ZAPPER_RPC_URL", DEFAULT_RPC_URL),
        aggregator_url=os.environ.get("ZAPPER_AGGREGATOR_URL", DEFAULT_AGGREGATOR_URL),
        aggregator_api_key=os.environ.get("ZAPPER_AGGREGATOR_API_KEY") or None,
        chain_id=int(os.environ.get("ZAPPER_CHAIN_ID", str(CHAIN_ID))),
        default_slippage_bps=int(
            os.environ.get("ZAPPER_DEFAULT_SLIPPAGE_BPS", str(DEFAULT_SLIPPAGE_BPS))
        ),
        http_timeout=float(os.environ.get("ZAPPER_HTTP_TIMEOUT", "10")),
        price_cache_ttl=float(os.environ.get("ZAPPER_PRICE_CACHE_TTL", "60")),
        simulation_url=os.environ.get("ZAPPER_SIMULATION_URL", DEFAULT_SIMULATION_URL),
        simulation_access_key=os.environ.get("ZAPPER_SIMULATION_ACCESS_KEY") or None,
    )


# Server settings
HOST = os.environ.get("ZAPPER_HOST", "0.0.0.0")
PORT = int(os.environ.get("ZAPPER_PORT", "8000"))
DEBUG = _env_flag("ZAPPER_DEBUG")

# Default configuration instance
DEFAULT_COMPOSER_CONFIG = ComposerConfig()
