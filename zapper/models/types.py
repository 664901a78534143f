"""Annotated field types shared by request, bundle and quote models.

On the wire every token amount is a decimal string (JSON numbers lose
precision past 2**53), and every address is 0x-prefixed hex. Internally
addresses are compared lowercase.
"""

import re
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from zapper.uint256 import UINT256_MAX

_ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"
_ADDRESS_RE = re.compile(_ADDRESS_PATTERN)


def validate_uint256(value: Any) -> str:
    """Coerce an int or decimal string to a canonical uint256 decimal string.

    Leading zeros and surrounding whitespace are dropped, so equal amounts
    compare equal as strings.

    Raises:
        ValueError: For booleans, non-integers, negatives and values above 2**256 - 1
    """
    # bool is an int subclass; True is never a token amount
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"Amount must be an int or decimal string, got {type(value).__name__}")
    if isinstance(value, str):
        try:
            amount = int(value, 10)
        except ValueError as err:
            raise ValueError(f"Amount is not a decimal integer: '{value}'") from err
    else:
        amount = value

    if not 0 <= amount <= UINT256_MAX:
        raise ValueError(f"Amount outside uint256 range: {value}")
    return str(amount)


# 0x-prefixed 20-byte hex address, any case
Address = Annotated[str, Field(pattern=_ADDRESS_PATTERN)]

# Token amount as canonical decimal string
Uint256 = Annotated[
    str,
    BeforeValidator(validate_uint256),
    Field(description="256-bit unsigned integer as decimal string"),
]

# Calldata and other raw hex
Bytes = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]*$")]

# Slippage tolerance in basis points (100 = 1%)
SlippageBps = Annotated[int, Field(ge=0, le=10000)]


def is_valid_address(address: Any) -> bool:
    return isinstance(address, str) and _ADDRESS_RE.match(address) is not None


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Lowercase, 0x-prefixed form of an address.

    Without validate the input is only reformatted, never checked.

    Raises:
        ValueError: If validate is set and the result is not a 20-byte hex address
    """
    normalized = address.lower()
    if not normalized.startswith("0x"):
        normalized = f"0x{normalized}"
    if validate and not is_valid_address(normalized):
        raise ValueError(f"Invalid address: {address}")
    return normalized


def same_address(a: str, b: str) -> bool:
    """Case-insensitive address equality."""
    return normalize_address(a) == normalize_address(b)
