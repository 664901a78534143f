"""Checked 256-bit unsigned integer for on-chain math replication.

Pool contracts are written in Vyper, where every uint256 operation reverts
on overflow, underflow or division by zero. Uint256 reproduces exactly that:
- Results above 2**256 - 1 raise Uint256Overflow
- Negative results raise Underflow
- Division or modulo by zero raises DivisionByZero
- Division truncates toward zero (values are never negative)

Usage pattern:
    from zapper.uint256 import U

    def calculate(a: int, b: int, c: int) -> int:
        ua, ub, uc = U(a), U(b), U(c)
        return ((ua * ub) // uc).value
"""

from __future__ import annotations

UINT256_MAX = 2**256 - 1


class Uint256Error(ArithmeticError):
    """Base class for uint256 arithmetic errors."""

    pass


class DivisionByZero(Uint256Error):
    """Division or modulo by zero."""

    pass


class Underflow(Uint256Error):
    """Result would be negative."""

    pass


class Uint256Overflow(Uint256Error):
    """Result exceeds 2**256 - 1."""

    pass


def _check(value: int) -> int:
    if value < 0:
        raise Underflow(f"Underflow: {value} < 0")
    if value > UINT256_MAX:
        raise Uint256Overflow(f"Value exceeds uint256 max: {value}")
    return value


def _extract_value(x: Uint256 | int) -> int:
    if isinstance(x, Uint256):
        return x._value
    if isinstance(x, bool) or not isinstance(x, int):
        raise TypeError(f"Uint256 operand must be int or Uint256, got {type(x).__name__}")
    return x


class Uint256:
    """Unsigned 256-bit integer with reverting arithmetic.

    Every operation produces a new Uint256 and validates the result range,
    so a computation either matches the contract bit for bit or raises at
    the same step the contract would revert.

    Attributes:
        value: The underlying integer value (read-only)
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | Uint256) -> None:
        if isinstance(value, Uint256):
            self._value = value._value
        elif isinstance(value, int) and not isinstance(value, bool):
            self._value = _check(value)
        else:
            raise TypeError(f"Uint256 requires int, got {type(value).__name__}")

    @property
    def value(self) -> int:
        """The underlying integer value."""
        return self._value

    def __repr__(self) -> str:
        return f"Uint256({self._value})"

    def __str__(self) -> str:
        return str(self._value)

    def __hash__(self) -> int:
        return hash(self._value)

    # --- Arithmetic operations ---

    def __add__(self, other: Uint256 | int) -> Uint256:
        return Uint256(self._value + _extract_value(other))

    def __radd__(self, other: int) -> Uint256:
        return Uint256(_extract_value(other) + self._value)

    def __sub__(self, other: Uint256 | int) -> Uint256:
        other_val = _extract_value(other)
        if other_val > self._value:
            raise Underflow(f"Underflow: {self._value} - {other_val}")
        return Uint256(self._value - other_val)

    def __rsub__(self, other: int) -> Uint256:
        other_val = _extract_value(other)
        if self._value > other_val:
            raise Underflow(f"Underflow: {other_val} - {self._value}")
        return Uint256(other_val - self._value)

    def __mul__(self, other: Uint256 | int) -> Uint256:
        return Uint256(self._value * _extract_value(other))

    def __rmul__(self, other: int) -> Uint256:
        return Uint256(_extract_value(other) * self._value)

    def __floordiv__(self, other: Uint256 | int) -> Uint256:
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"Division by zero: {self._value} // 0")
        return Uint256(self._value // other_val)

    def __rfloordiv__(self, other: int) -> Uint256:
        if self._value == 0:
            raise DivisionByZero(f"Division by zero: {other} // 0")
        return Uint256(_extract_value(other) // self._value)

    def __mod__(self, other: Uint256 | int) -> Uint256:
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"Modulo by zero: {self._value} % 0")
        return Uint256(self._value % other_val)

    def __pow__(self, exponent: int) -> Uint256:
        return Uint256(self._value ** _extract_value(exponent))

    # --- Comparison operations ---

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Uint256):
            return self._value == other._value
        if isinstance(other, int):
            return self._value == other
        return NotImplemented

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return NotImplemented
        return not result

    def __lt__(self, other: Uint256 | int) -> bool:
        return self._value < _extract_value(other)

    def __le__(self, other: Uint256 | int) -> bool:
        return self._value <= _extract_value(other)

    def __gt__(self, other: Uint256 | int) -> bool:
        return self._value > _extract_value(other)

    def __ge__(self, other: Uint256 | int) -> bool:
        return self._value >= _extract_value(other)

    # --- Conversion ---

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    # --- Named operations ---

    def abs_diff(self, other: Uint256 | int) -> Uint256:
        """Distance between two values, the convergence check used by every Newton loop."""
        other_val = _extract_value(other)
        if self._value > other_val:
            return Uint256(self._value - other_val)
        return Uint256(other_val - self._value)

    def min(self, other: Uint256 | int) -> Uint256:
        return Uint256(min(self._value, _extract_value(other)))

    def max(self, other: Uint256 | int) -> Uint256:
        return Uint256(max(self._value, _extract_value(other)))

    @classmethod
    def zero(cls) -> Uint256:
        return cls(0)

    @classmethod
    def from_hex(cls, data: str) -> Uint256:
        """Parse an ABI-encoded uint256 return value ("0x..." hex string).

        Raises:
            ValueError: If the string is not valid hex
        """
        return cls(int(data, 16))


# Convenience alias for concise code
U = Uint256
