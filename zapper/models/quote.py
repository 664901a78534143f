"""Pydantic models for zap quotes.

A quote pairs the composed bundle with the router's response for it: the
transaction to sign, its gas estimate and the predicted output.
"""

from pydantic import BaseModel, Field

from zapper.bundles.actions import Bundle
from zapper.models.types import Address, Bytes, Uint256


class Transaction(BaseModel):
    """Transaction payload returned by the router."""

    to: Address
    data: Bytes
    value: Uint256 = Field(default="0")
    from_address: Address | None = Field(default=None, alias="from")

    model_config = {"populate_by_name": True}


class HybridBreakdown(BaseModel):
    """How a hybrid zap divides its base amount between swapping and minting.

    bonus_percent is the pool's premium over a 1:1 mint for the swapped part.
    """

    swap_amount: Uint256 = Field(alias="swapAmount")
    mint_amount: Uint256 = Field(alias="mintAmount")
    swap_output: Uint256 = Field(default="0", alias="swapOutput")
    bonus_percent: float = Field(default=0.0, alias="bonusPercent")
    swap_protocol: str = Field(default="curve", alias="swapProtocol")
    mint_protocol: str = Field(default="mint", alias="mintProtocol")

    model_config = {"populate_by_name": True}


class ZapQuote(BaseModel):
    """Advisory quote for one zap request.

    estimated_output is for display only; execution amounts come from the
    bundle's dynamic references.
    """

    input_token: Address = Field(alias="inputToken")
    output_token: Address = Field(alias="outputToken")
    amount_in: Uint256 = Field(alias="amountIn")
    estimated_output: Uint256 = Field(alias="estimatedOutput")
    exchange_rate: float = Field(alias="exchangeRate", description="Output per unit of input.")
    price_impact: float | None = Field(
        default=None,
        alias="priceImpact",
        description="Percent lost to the route, None when USD prices are unavailable.",
    )
    gas: int | None = Field(default=None, description="Router gas estimate.")
    tx: Transaction | None = None
    bundle: Bundle
    hybrid: HybridBreakdown | None = None

    model_config = {"populate_by_name": True}


class PriceImpactRequest(BaseModel):
    """USD values of a zap's input and output."""

    input_usd: float | None = Field(default=None, alias="inputUsd")
    output_usd: float | None = Field(default=None, alias="outputUsd")

    model_config = {"populate_by_name": True}
