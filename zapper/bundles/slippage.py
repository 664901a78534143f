"""Slippage buffer for literal amounts.

Used only where an amount cannot be a dynamic reference: exchange min_dy
arguments, and split legs whose amounts are fixed before execution. A
buffered literal can still exceed the router's real output when its chosen
path underperforms the estimate by more than the buffer.
"""

from zapper.constants import (
    BPS_DENOMINATOR,
    DEFAULT_SLIPPAGE_BPS,
    MAX_SLIPPAGE_BPS,
    MIN_SLIPPAGE_BPS,
)

from .errors import BundleCompositionError, InvalidSlippageError


def apply_slippage_buffer(estimate: int, slippage_bps: int) -> int:
    """Conservative amount: estimate * (10000 - slippage_bps) / 10000, truncated.

    Raises:
        ValueError: If estimate is negative or slippage_bps is outside [0, 10000]
    """
    if estimate < 0:
        raise ValueError(f"Estimate cannot be negative: {estimate}")
    if not 0 <= slippage_bps <= BPS_DENOMINATOR:
        raise ValueError(f"Slippage must be within 0-{BPS_DENOMINATOR} bps, got {slippage_bps}")
    return estimate * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR


def validate_slippage(slippage: int | str | None) -> int:
    """Parse a caller-supplied slippage in bps, defaulting to 1%.

    Raises:
        InvalidSlippageError: If not an integer in [10, 5000]
    """
    if slippage is None:
        return DEFAULT_SLIPPAGE_BPS
    try:
        bps = int(slippage)
    except (TypeError, ValueError) as err:
        raise InvalidSlippageError(
            f"Invalid slippage: {slippage}. Must be {MIN_SLIPPAGE_BPS}-{MAX_SLIPPAGE_BPS} bps"
        ) from err
    if not MIN_SLIPPAGE_BPS <= bps <= MAX_SLIPPAGE_BPS:
        raise InvalidSlippageError(
            f"Invalid slippage: {slippage}. Must be {MIN_SLIPPAGE_BPS}-{MAX_SLIPPAGE_BPS} bps"
        )
    return bps


def calculate_min_dy(expected_output: int, slippage_bps: int) -> int:
    """Minimum accepted output for a direct pool exchange.

    Raises:
        BundleCompositionError: If expected_output is zero. A zero min_dy
            would disable the exchange's slippage protection.
    """
    if expected_output <= 0:
        raise BundleCompositionError("Cannot derive min_dy from a zero output estimate")
    return apply_slippage_buffer(expected_output, slippage_bps)
