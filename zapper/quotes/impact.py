"""Price impact and USD valuation."""

from __future__ import annotations


def price_impact(input_usd: float | None, output_usd: float | None) -> float | None:
    """Percent of USD value lost between input and output.

    Negative when the output is worth more than the input. None when either
    value is unknown or the input is worth nothing.
    """
    if input_usd is None or output_usd is None:
        return None
    if input_usd == 0:
        return None
    return (input_usd - output_usd) / input_usd * 100


def usd_value(amount: int, decimals: int, price: float | None) -> float | None:
    """USD value of a raw token amount, None without a price."""
    if price is None:
        return None
    return amount / 10**decimals * price


def exchange_rate(amount_in: int, decimals_in: int, amount_out: int, decimals_out: int) -> float:
    """Output per unit of input, in whole tokens."""
    if amount_in == 0:
        return 0.0
    return (amount_out / 10**decimals_out) / (amount_in / 10**decimals_in)
