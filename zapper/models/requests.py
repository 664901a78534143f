"""Pydantic models for bundle and quote requests."""

from pydantic import BaseModel, Field, PositiveInt

from zapper.bundles.composer import HybridRoute, HybridStrategy
from zapper.models.types import Address, Uint256


class _ZapRequest(BaseModel):
    from_address: Address = Field(alias="fromAddress")
    slippage: int | None = Field(default=None, description="Slippage in basis points.")
    receiver: Address | None = None

    model_config = {"populate_by_name": True}


class ZapInRequest(_ZapRequest):
    token_in: Address = Field(alias="tokenIn")
    vault: Address
    amount_in: Uint256 = Field(alias="amountIn")
    underlying: Address | None = None


class ZapOutRequest(_ZapRequest):
    vault: Address
    token_out: Address = Field(alias="tokenOut")
    shares: Uint256
    underlying: Address | None = None


class VaultToVaultRequest(_ZapRequest):
    source_vault: Address = Field(alias="sourceVault")
    target_vault: Address = Field(alias="targetVault")
    shares: Uint256
    source_underlying: Address | None = Field(default=None, alias="sourceUnderlying")
    target_underlying: Address | None = Field(default=None, alias="targetUnderlying")


class HybridRouteModel(BaseModel):
    """Wire form of a HybridRoute."""

    base_token: Address = Field(alias="baseToken")
    wrapper: Address
    derivative: Address
    pool: Address
    i: int = Field(default=0, ge=0, le=1)
    j: int = Field(default=1, ge=0, le=1)
    minter: Address | None = None
    swap_protocol: str = Field(default="curve", alias="swapProtocol")
    mint_protocol: str = Field(default="mint", alias="mintProtocol")
    # 10**(18 - decimals) per pool coin; used by quotes only
    precisions: tuple[PositiveInt, PositiveInt] = (1, 1)

    model_config = {"populate_by_name": True}

    def to_route(self) -> HybridRoute:
        return HybridRoute(
            base_token=self.base_token,
            wrapper=self.wrapper,
            derivative=self.derivative,
            pool=self.pool,
            i=self.i,
            j=self.j,
            minter=self.minter,
            swap_protocol=self.swap_protocol,
            mint_protocol=self.mint_protocol,
        )


class HybridRequest(_ZapRequest):
    """Hybrid zap request.

    The estimate fields are only used by the bundle endpoint; the quote
    endpoint computes them from live pool state.
    """

    input_token: Address = Field(alias="inputToken")
    vault: Address
    amount_in: Uint256 = Field(alias="amountIn")
    route: HybridRouteModel
    crypto_pool: bool = Field(default=False, alias="cryptoPool")
    strategy: HybridStrategy = HybridStrategy.SWAP
    expected_swap_output: Uint256 | None = Field(default=None, alias="expectedSwapOutput")
    swap_amount: Uint256 | None = Field(default=None, alias="swapAmount")
    mint_amount: Uint256 | None = Field(default=None, alias="mintAmount")
    final_output_estimate: Uint256 | None = Field(default=None, alias="finalOutputEstimate")
