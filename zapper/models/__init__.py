"""Pydantic models and shared types for zap requests and quotes.

Quote models live in zapper.models.quote; they depend on the bundle models
and are imported from there directly.
"""

from zapper.models.types import Address, Bytes, SlippageBps, Uint256

__all__ = [
    "Address",
    "Bytes",
    "SlippageBps",
    "Uint256",
]
