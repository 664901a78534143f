"""AMM math error classes.

These mirror the points at which the pool contracts revert.
"""


class AmmError(Exception):
    """Base error for off-chain AMM math."""

    pass


class ZeroBalanceError(AmmError):
    """A pool balance is zero where the invariant needs it positive."""

    pass


class InvariantDidNotConverge(AmmError):
    """Newton-Raphson iteration for the invariant D did not converge."""

    pass


class GetYDidNotConverge(AmmError):
    """Newton-Raphson iteration for the balance y did not converge."""

    pass


class UnsafeCryptoValue(AmmError):
    """CryptoSwap input outside the range the pool contract accepts."""

    pass
