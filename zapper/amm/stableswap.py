"""Curve StableSwap-NG pool math.

Off-chain replica of the two-coin StableSwap-NG views contract, so quotes
can be produced from one batched state read instead of a get_dy call per
candidate amount.

IMPORTANT: All arithmetic runs on Uint256, with the contract's operation
order, so truncation and revert points match the pool exactly.
"""

from zapper.uint256 import U, Uint256

from .errors import GetYDidNotConverge, InvariantDidNotConverge, ZeroBalanceError
from .pools import PoolSnapshot

N_COINS = 2
A_PRECISION = 100
FEE_DENOMINATOR = 10**10

# Maximum iterations for Newton-Raphson convergence
_MAX_ITERATIONS = 255

# Binary search stops once the bracket is narrower than 10 whole tokens
_PEG_SEARCH_PRECISION = 10 * 10**18


def compute_ann(a: int, is_a_precise: bool = False) -> int:
    """Convert a pool's A reading into Ann = A * A_PRECISION * N_COINS.

    Pools expose either A() (plain) or A_precise() (already multiplied by
    A_PRECISION).
    """
    if is_a_precise:
        return a * N_COINS
    return a * A_PRECISION * N_COINS


def get_d(xp: tuple[int, int] | list[int], ann: int) -> int:
    """Calculate the StableSwap invariant D using Newton-Raphson iteration.

    D satisfies: Ann*sum(x) + D = Ann*D + D^(n+1) / (n^n * prod(x))

    Algorithm:
        1. Initial guess: D = sum(xp)
        2. Iterate until |D_new - D_prev| <= 1
        3. Max iterations: 255

    Args:
        xp: Pool balances in 18-decimal precision
        ann: A * A_PRECISION * N_COINS

    Returns:
        The invariant D (0 for an empty pool)

    Raises:
        ZeroBalanceError: If exactly one side of the pool is empty
        InvariantDidNotConverge: If iteration doesn't converge
    """
    s = U(xp[0]) + U(xp[1])
    if s == 0:
        return 0

    for i, x in enumerate(xp):
        if x == 0:
            raise ZeroBalanceError(f"Balance at index {i} must be positive")

    u_ann = U(ann)
    d = s
    n_coins_pow = U(N_COINS**N_COINS)

    for _ in range(_MAX_ITERATIONS):
        # D_P = D^(n+1) / (n^n * prod(xp)), in the contract's order
        d_p = d
        for x in xp:
            d_p = (d_p * d) // U(x)
        d_p = d_p // n_coins_pow

        d_prev = d
        numerator = ((u_ann * s) // A_PRECISION + d_p * N_COINS) * d
        denominator = ((u_ann - A_PRECISION) * d) // A_PRECISION + d_p * (N_COINS + 1)
        d = numerator // denominator

        if d.abs_diff(d_prev) <= 1:
            return d.value

    raise InvariantDidNotConverge(f"get_d did not converge after {_MAX_ITERATIONS} iterations")


def get_y(i: int, j: int, x: int, xp: tuple[int, int] | list[int], ann: int, d: int) -> int:
    """Solve for the balance of coin j given a proposed balance x for coin i.

    Newton iteration on y^2 + (b - D)*y = c, with the invariant D fixed.

    Args:
        i: Index of the coin whose balance is being set
        j: Index of the coin to solve for
        x: Proposed new balance of coin i
        xp: Current pool balances
        ann: A * A_PRECISION * N_COINS
        d: Invariant to preserve

    Returns:
        The balance of coin j that keeps the invariant

    Raises:
        ValueError: If i == j or an index is out of range
        GetYDidNotConverge: If iteration doesn't converge
    """
    if i == j:
        raise ValueError("Cannot solve for the coin being set")
    if not (0 <= i < N_COINS and 0 <= j < N_COINS):
        raise ValueError(f"Coin indices ({i}, {j}) out of range for {N_COINS} coins")

    u_d = U(d)
    u_ann = U(ann)
    c = u_d
    s = Uint256.zero()

    for k in range(N_COINS):
        if k == i:
            x_k = U(x)
        elif k != j:
            x_k = U(xp[k])
        else:
            continue
        s = s + x_k
        c = (c * u_d) // (x_k * N_COINS)

    c = (c * u_d * A_PRECISION) // (u_ann * N_COINS)
    b = s + (u_d * A_PRECISION) // u_ann

    y = u_d
    for _ in range(_MAX_ITERATIONS):
        y_prev = y
        y = (y * y + c) // (y * 2 + b - u_d)
        if y.abs_diff(y_prev) <= 1:
            return y.value

    raise GetYDidNotConverge(f"get_y did not converge after {_MAX_ITERATIONS} iterations")


def dynamic_fee(xpi: int, xpj: int, base_fee: int, fee_multiplier: int) -> int:
    """Fee scaled up by pool imbalance.

    Returns base_fee unchanged when the off-peg multiplier is at or below
    FEE_DENOMINATOR. Otherwise the fee grows as 4*xpi*xpj/(xpi+xpj)^2 falls
    away from 1, i.e. as the pair moves away from balance.
    """
    if fee_multiplier <= FEE_DENOMINATOR:
        return base_fee

    u_xpi, u_xpj, u_mult = U(xpi), U(xpj), U(fee_multiplier)
    xps2 = (u_xpi + u_xpj) ** 2
    fee = (u_mult * base_fee) // (
        ((u_mult - FEE_DENOMINATOR) * 4 * u_xpi * u_xpj) // xps2 + FEE_DENOMINATOR
    )
    return fee.value


def get_dy(
    i: int,
    j: int,
    dx: int,
    xp: tuple[int, int] | list[int],
    ann: int,
    base_fee: int,
    fee_multiplier: int,
) -> int:
    """Output of coin j for an input dx of coin i, after fees.

    The dynamic fee is evaluated at the midpoint of the pre- and post-trade
    balances, and dy is reduced by 1 before fees, both as the views contract
    does.

    Returns:
        Output amount, or 0 when the trade produces nothing
    """
    if dx == 0:
        return 0

    new_x = U(xp[i]) + dx
    d = get_d(xp, ann)
    y = U(get_y(i, j, new_x.value, xp, ann, d))

    xp_j = U(xp[j])
    if y + 1 >= xp_j:
        return 0
    dy = xp_j - y - 1

    fee = dynamic_fee(
        ((U(xp[i]) + new_x) // 2).value,
        ((xp_j + y) // 2).value,
        base_fee,
        fee_multiplier,
    )
    fee_amount = (dy * fee) // FEE_DENOMINATOR
    return (dy - fee_amount).value


def get_dy_offchain(
    dx: int,
    xp: tuple[int, int] | list[int],
    ann: int,
    base_fee: int,
    fee_multiplier: int,
) -> int:
    """get_dy for the usual direction, coin 0 in and coin 1 out."""
    return get_dy(0, 1, dx, xp, ann, base_fee, fee_multiplier)


def snapshot_get_dy(snapshot: PoolSnapshot, i: int, j: int, dx: int) -> int:
    """get_dy against a captured pool snapshot, dx and dy in raw token units.

    dx is scaled up by coin i's precision and dy scaled back down by coin
    j's, as the pool contract does with its rates.
    """
    rates = snapshot.precisions
    dy = get_dy(
        i,
        j,
        dx * rates[i],
        snapshot.xp,
        snapshot.ann,
        snapshot.base_fee,
        snapshot.offpeg_fee_multiplier,
    )
    return dy // rates[j]


def find_peg_point(snapshot: PoolSnapshot) -> int:
    """Largest coin-0 input that still returns at least as much coin 1.

    Binary search over the pool's imbalance. A pool holding at least as much
    coin 0 as coin 1 never pays a bonus, so the answer there is 0.
    """
    xp = snapshot.xp
    if xp[0] >= xp[1]:
        return 0

    low = 0
    high = (xp[1] - xp[0]) // snapshot.precisions[0]
    while high - low > _PEG_SEARCH_PRECISION:
        mid = (low + high) // 2
        if snapshot_get_dy(snapshot, 0, 1, mid) >= mid:
            low = mid
        else:
            high = mid
    return low
