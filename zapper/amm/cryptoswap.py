"""Curve CryptoSwap v2 (two-coin) pool math.

Integer replication of the CurveCryptoMath newton_D / newton_y contracts and the
pool's get_dy view, for volatile pairs that do not trade near parity.

The invariant is gamma-adjusted: K0 = 4*x0*x1/D^2 measures how far the pool
sits from balance, and gamma controls how quickly the curve falls from
StableSwap-like behaviour towards constant-product away from K0 = 1.

All values use 1e18 precision; A is in ANN form (A * N**N * A_MULTIPLIER).
"""

from zapper.uint256 import U, Uint256

from .errors import GetYDidNotConverge, InvariantDidNotConverge, UnsafeCryptoValue
from .pools import CryptoPoolSnapshot

N_COINS = 2
PRECISION = 10**18
A_MULTIPLIER = 10000
FEE_DENOMINATOR = 10**10

MIN_GAMMA = 10**10
MAX_GAMMA = 2 * 10**16
MIN_A = N_COINS**N_COINS * A_MULTIPLIER // 10
MAX_A = N_COINS**N_COINS * A_MULTIPLIER * 100000

_MAX_ITERATIONS = 255
_PEG_SEARCH_PRECISION = 10 * 10**18


def _check_params(ann: int, gamma: int) -> None:
    if not (MIN_A <= ann <= MAX_A):
        raise UnsafeCryptoValue(f"A={ann} outside [{MIN_A}, {MAX_A}]")
    if not (MIN_GAMMA <= gamma <= MAX_GAMMA):
        raise UnsafeCryptoValue(f"gamma={gamma} outside [{MIN_GAMMA}, {MAX_GAMMA}]")


def _g1k0(gamma: Uint256, k0: Uint256) -> Uint256:
    g1k0 = gamma + PRECISION
    if g1k0 > k0:
        return g1k0 - k0 + 1
    return k0 - g1k0 + 1


def geometric_mean(x: tuple[int, int] | list[int], sort: bool = True) -> int:
    """Integer geometric mean of two values by Newton iteration.

    Raises:
        InvariantDidNotConverge: If iteration doesn't converge
    """
    values = sorted(x, reverse=True) if sort else list(x)
    x0, x1 = U(values[0]), U(values[1])
    if x0 == 0:
        return 0

    d = x0
    for _ in range(_MAX_ITERATIONS):
        d_prev = d
        d = (d + (x0 * x1) // d) // N_COINS
        diff = d.abs_diff(d_prev)
        if diff <= 1 or diff * PRECISION < d:
            return d.value

    raise InvariantDidNotConverge("geometric_mean did not converge")


def newton_d(ann: int, gamma: int, x_unsorted: tuple[int, int] | list[int]) -> int:
    """Calculate the CryptoSwap invariant D for balances already in price-scaled form.

    Initial guess is N * geometric_mean(x). The iteration stops once the
    relative step falls under 1e-14 (or under 1e16 absolute for tiny D).

    Args:
        ann: A in ANN form
        gamma: gamma, 1e18 precision
        x_unsorted: Scaled balances (xp)

    Returns:
        The invariant D

    Raises:
        UnsafeCryptoValue: If parameters or balances leave the contract's safe range
        InvariantDidNotConverge: If iteration doesn't converge
    """
    _check_params(ann, gamma)

    x = sorted(x_unsorted, reverse=True)
    if not (10**9 <= x[0] <= 10**15 * PRECISION):
        raise UnsafeCryptoValue(f"Unsafe value x[0]={x[0]}")
    if x[1] * PRECISION // x[0] < 10**14:
        raise UnsafeCryptoValue("Unsafe balance ratio")

    u_ann, u_gamma = U(ann), U(gamma)
    x0, x1 = U(x[0]), U(x[1])
    d = U(geometric_mean(x, sort=False)) * N_COINS
    s = x0 + x1

    for _ in range(_MAX_ITERATIONS):
        d_prev = d

        k0 = (((U(PRECISION) * N_COINS**2) * x0) // d * x1) // d
        g1k0 = _g1k0(u_gamma, k0)

        # D / (A * N**N) * g1k0**2 / gamma**2
        mul1 = (((PRECISION * d) // u_gamma * g1k0) // u_gamma * g1k0 * A_MULTIPLIER) // u_ann
        # 2*N*K0 / g1k0
        mul2 = (U(2 * PRECISION) * N_COINS * k0) // g1k0

        neg_fprime = (
            (s + (s * mul2) // PRECISION) + (mul1 * N_COINS) // k0 - (mul2 * d) // PRECISION
        )

        d_plus = (d * (neg_fprime + s)) // neg_fprime
        d_minus = (d * d) // neg_fprime
        if k0 < PRECISION:
            d_minus = d_minus + ((d * (mul1 // neg_fprime)) // PRECISION * (PRECISION - k0)) // k0
        else:
            d_minus = d_minus - ((d * (mul1 // neg_fprime)) // PRECISION * (k0 - PRECISION)) // k0

        if d_plus > d_minus:
            d = d_plus - d_minus
        else:
            d = (d_minus - d_plus) // 2

        diff = d.abs_diff(d_prev)
        if diff * 10**14 < d.max(10**16):
            for value in x:
                frac = (U(value) * PRECISION) // d
                if not (10**16 <= frac <= 10**20):
                    raise UnsafeCryptoValue(f"Unsafe value x[i]={value} for D={d.value}")
            return d.value

    raise InvariantDidNotConverge(f"newton_d did not converge after {_MAX_ITERATIONS} iterations")


def newton_y(ann: int, gamma: int, x: tuple[int, int] | list[int], d: int, i: int) -> int:
    """Solve for the scaled balance of coin i that keeps the invariant D.

    Args:
        ann: A in ANN form
        gamma: gamma, 1e18 precision
        x: Scaled balances, with the other coin already at its new value
        d: Invariant to preserve
        i: Index of the coin to solve for

    Returns:
        The scaled balance of coin i

    Raises:
        UnsafeCryptoValue: If parameters or the result leave the safe range
        GetYDidNotConverge: If iteration doesn't converge
    """
    _check_params(ann, gamma)
    if not (10**17 <= d <= 10**15 * PRECISION):
        raise UnsafeCryptoValue(f"Unsafe value D={d}")

    u_ann, u_gamma, u_d = U(ann), U(gamma), U(d)
    x_j = U(x[1 - i])
    y = (u_d * u_d) // (x_j * N_COINS**2)
    k0_i = ((U(PRECISION) * N_COINS) * x_j) // u_d
    if not (10**16 * N_COINS <= k0_i <= 10**20 * N_COINS):
        raise UnsafeCryptoValue(f"Unsafe value x[j]={x_j.value}")

    convergence_limit = (x_j // 10**14).max(u_d // 10**14).max(100)

    for _ in range(_MAX_ITERATIONS):
        y_prev = y
        k0 = (k0_i * y * N_COINS) // u_d
        s = x_j + y
        g1k0 = _g1k0(u_gamma, k0)

        # D / (A * N**N) * g1k0**2 / gamma**2
        mul1 = (((PRECISION * u_d) // u_gamma * g1k0) // u_gamma * g1k0 * A_MULTIPLIER) // u_ann
        # 2*K0 / g1k0
        mul2 = U(PRECISION) + (U(2 * PRECISION) * k0) // g1k0

        yfprime = PRECISION * y + s * mul2 + mul1
        dyfprime = u_d * mul2
        if yfprime < dyfprime:
            y = y_prev // 2
            continue
        yfprime = yfprime - dyfprime
        fprime = yfprime // y

        y_minus = mul1 // fprime
        y_plus = (yfprime + PRECISION * u_d) // fprime + (y_minus * PRECISION) // k0
        y_minus = y_minus + (PRECISION * s) // fprime

        if y_plus < y_minus:
            y = y_prev // 2
        else:
            y = y_plus - y_minus

        diff = y.abs_diff(y_prev)
        if diff < convergence_limit.max(y // 10**14):
            frac = (y * PRECISION) // u_d
            if not (10**16 <= frac <= 10**20):
                raise UnsafeCryptoValue(f"Unsafe value for y={y.value}")
            return y.value

    raise GetYDidNotConverge(f"newton_y did not converge after {_MAX_ITERATIONS} iterations")


def crypto_fee(xp: tuple[int, int] | list[int], mid_fee: int, out_fee: int, fee_gamma: int) -> int:
    """Dynamic fee: mid_fee at balance, sliding towards out_fee as the pool skews."""
    x0, x1 = U(xp[0]), U(xp[1])
    f = x0 + x1
    u_fee_gamma = U(fee_gamma)
    k = (((U(PRECISION) * N_COINS**N_COINS) * x0) // f * x1) // f
    f = (u_fee_gamma * PRECISION) // (u_fee_gamma + PRECISION - k)
    return ((U(mid_fee) * f + U(out_fee) * (U(PRECISION) - f)) // PRECISION).value


def crypto_get_dy(snapshot: CryptoPoolSnapshot, i: int, j: int, dx: int) -> int:
    """Output of coin j for dx of coin i, after the dynamic fee.

    Uses the pool's stored D, as the view does when no A/gamma ramp is active.
    """
    if i == j or not (0 <= i < N_COINS and 0 <= j < N_COINS):
        raise ValueError(f"Invalid coin indices ({i}, {j})")
    if dx == 0:
        return 0

    prec0, prec1 = snapshot.precisions
    price_scale = U(snapshot.price_scale) * prec1

    balances = [U(snapshot.balances[0]), U(snapshot.balances[1])]
    balances[i] = balances[i] + dx
    xp = [balances[0] * prec0, (balances[1] * price_scale) // PRECISION]

    y = U(newton_y(snapshot.a, snapshot.gamma, [v.value for v in xp], snapshot.d, j))
    if y + 1 >= xp[j]:
        return 0
    dy = xp[j] - y - 1
    xp[j] = y

    if j > 0:
        dy = (dy * PRECISION) // price_scale
    else:
        dy = dy // prec0

    fee = crypto_fee([v.value for v in xp], snapshot.mid_fee, snapshot.out_fee, snapshot.fee_gamma)
    return (dy - (dy * fee) // FEE_DENOMINATOR).value


def crypto_find_peg_point(snapshot: CryptoPoolSnapshot, i: int = 0, j: int = 1) -> int:
    """Largest input of coin i that still returns at least as much coin j.

    Binary search bounded by the pool's coin j balance. Amounts that push the
    pool outside its safe range count as below peg.
    """
    low = 0
    high = snapshot.balances[j]
    while high - low > _PEG_SEARCH_PRECISION:
        mid = (low + high) // 2
        try:
            above_peg = crypto_get_dy(snapshot, i, j, mid) >= mid
        except (UnsafeCryptoValue, GetYDidNotConverge):
            above_peg = False
        if above_peg:
            low = mid
        else:
            high = mid
    return low
