"""Pydantic models for router API responses."""

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field

from zapper.models.quote import Transaction
from zapper.models.types import Uint256


def _parse_gas(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


Gas = Annotated[int | None, BeforeValidator(_parse_gas)]


class BundleResponse(BaseModel):
    """Router answer to a bundle request.

    amounts_out maps each output token (lowercase) to its predicted amount.
    """

    tx: Transaction
    gas: Gas = None
    amounts_out: dict[str, Uint256] = Field(default_factory=dict, alias="amountsOut")
    price_impact: float | None = Field(default=None, alias="priceImpact")

    model_config = {"populate_by_name": True}

    def amount_out(self, token: str) -> int | None:
        """Predicted output of `token`, case-insensitive; None if not predicted."""
        wanted = token.lower()
        for address, amount in self.amounts_out.items():
            if address.lower() == wanted:
                return int(amount)
        return None


class RouteResponse(BaseModel):
    """Router answer to a single-route request."""

    tx: Transaction
    gas: Gas = None
    amount_out: Uint256 = Field(alias="amountOut")
    price_impact: float | None = Field(default=None, alias="priceImpact")

    model_config = {"populate_by_name": True}


class TokenPrice(BaseModel):
    """USD price of a token as reported by the router's price feed."""

    address: str
    price: float
    decimals: int | None = None
    symbol: str | None = None
